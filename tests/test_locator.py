"""
Tests for the reference registry, pairwise aligner and sequence locator.

No test downloads from NCBI: references come from temporary FASTA files or
are built in memory.
"""

import warnings

import pytest

from virodiv.aligners import PairwiseReferenceAligner, default_pairwise_aligner
from virodiv.errors import AlignmentUnavailableError, DegenerateInputError, ReferenceOptionWarning
from virodiv.locator import filter_by_location, locate, locate_alignment, sequence_locator
from virodiv.models import AlignmentResult, Direction, ReferenceGenome, SequenceCollection
from virodiv.references import (
    REFERENCE_GENOMES,
    clear_reference_cache,
    load_reference,
    resolve_reference_name,
)
from virodiv.translation import reverse_complement

REFERENCE = "ATGCGTACGTTAGCCTAGGATCCAAGTTCGAGCTTACGGATCAGTCCAGTAAGCTTGCA"
QUERY = REFERENCE[10:40]


@pytest.fixture
def genome():
    return ReferenceGenome(name="TEST", sequence=REFERENCE)


@pytest.fixture
def reference_dir(tmp_path):
    """Directory holding a small HXB2.fasta stand-in."""
    (tmp_path / "HXB2.fasta").write_text(f">HXB2 test\n{REFERENCE}\n")
    clear_reference_cache()
    yield tmp_path
    clear_reference_cache()


class FixedAligner:
    """Returns the same alignment for every query and counts calls."""

    def __init__(self, alignment):
        self.alignment = alignment
        self.calls = 0

    def align(self, query, reference):
        self.calls += 1
        return self.alignment


class FailingAligner:
    def align(self, query, reference):
        raise AlignmentUnavailableError("aligner offline")


class TestReferences:
    """Tests for the reference genome registry."""

    def test_registry(self):
        """Test the three supported genomes and their accessions."""
        assert set(REFERENCE_GENOMES) == {"HXB2", "NL43", "MAC239"}
        assert REFERENCE_GENOMES["HXB2"].accession == "K03455.1"

    def test_registry_read_only(self):
        """Test the registry cannot be modified."""
        with pytest.raises(TypeError):
            REFERENCE_GENOMES["NEW"] = ReferenceGenome(name="NEW")

    def test_resolve_names(self):
        """Test identifiers are normalized."""
        assert resolve_reference_name("hxb2") == "HXB2"
        assert resolve_reference_name("NL4-3") == "NL43"
        assert resolve_reference_name("mac_239") == "MAC239"
        assert resolve_reference_name(None) == "HXB2"

    def test_unknown_name_falls_back(self, reference_dir):
        """Test an unknown reference warns and loads HXB2."""
        with pytest.warns(ReferenceOptionWarning):
            reference = load_reference("SIVcpz", reference_dir=reference_dir, fetch=False)
        assert reference.name == "HXB2"
        assert reference.sequence == REFERENCE

    def test_load_from_directory(self, reference_dir):
        """Test a reference is read from <dir>/<NAME>.fasta."""
        reference = load_reference("HXB2", reference_dir=reference_dir, fetch=False)
        assert reference.sequence == REFERENCE
        assert reference.accession == "K03455.1"

    def test_missing_reference(self, tmp_path):
        """Test a missing file with downloads disabled raises."""
        clear_reference_cache()
        with pytest.raises(AlignmentUnavailableError):
            load_reference("NL43", reference_dir=tmp_path, fetch=False)

    def test_genome_passthrough(self, genome):
        """Test a loaded ReferenceGenome is used as is."""
        assert load_reference(genome) is genome
        with pytest.raises(AlignmentUnavailableError):
            load_reference(ReferenceGenome(name="EMPTY"))


class TestLocateAlignment:
    """Tests for coordinates derived from one alignment."""

    def test_coordinates_with_gaps(self):
        """Test start, end, similarity and indel of a gapped alignment."""
        alignment = AlignmentResult(
            aligned_query="---ACGT-ACGT--",
            aligned_reference="AAAACGTTACGTAA",
        )
        result = locate_alignment(alignment, Direction.FORWARD, "TEST")
        assert (result.start, result.end) == (4, 12)
        assert result.similarity == pytest.approx(8 / 9 * 100)
        assert result.indel
        assert result.reference == "TEST"

    def test_reference_gaps(self):
        """Test gaps in the reference shorten the covered span."""
        alignment = AlignmentResult(aligned_query="ACGTTT", aligned_reference="ACG--T")
        result = locate_alignment(alignment)
        assert (result.start, result.end) == (1, 4)
        assert result.similarity == pytest.approx(4 / 6 * 100)
        assert result.indel

    def test_exact_match(self):
        """Test an ungapped identical span."""
        alignment = AlignmentResult(aligned_query="--ACG", aligned_reference="TTACG")
        result = locate_alignment(alignment)
        assert (result.start, result.end) == (3, 5)
        assert result.similarity == 100.0
        assert not result.indel

    def test_empty_query(self):
        """Test an all-gap query is rejected."""
        with pytest.raises(DegenerateInputError):
            locate_alignment(AlignmentResult(aligned_query="----", aligned_reference="ACGT"))

    def test_query_overhangs_reference_start(self):
        """Test query bases before the reference are clipped from the span."""
        result = locate_alignment(AlignmentResult(aligned_query="CCACGT", aligned_reference="--ACGT"))
        assert (result.start, result.end) == (1, 4)
        assert result.similarity == 100.0
        assert not result.indel

    def test_overhang_keeps_interior_indel(self):
        """Test clipping leaves gaps inside the shared span counted as indels."""
        alignment = AlignmentResult(aligned_query="AC-TGG", aligned_reference="ACGT--")
        result = locate_alignment(alignment)
        assert (result.start, result.end) == (1, 4)
        assert result.similarity == pytest.approx(3 / 4 * 100)
        assert result.indel

    def test_no_overlap(self):
        """Test rows that never share a column are rejected."""
        with pytest.raises(DegenerateInputError):
            locate_alignment(AlignmentResult(aligned_query="AC--", aligned_reference="--GT"))


class TestLocate:
    """Tests for locating sequences on a reference."""

    def test_forward(self, genome):
        """Test an exact substring is placed at its reference coordinates."""
        result = locate(QUERY, genome)
        assert (result.start, result.end) == (11, 40)
        assert result.similarity == pytest.approx(100.0)
        assert result.direction == Direction.FORWARD
        assert not result.indel
        assert result.reference == "TEST"

    def test_reverse_complement(self, genome):
        """Test a reverse-complemented query is found on the minus strand."""
        result = locate(reverse_complement(QUERY), genome)
        assert (result.start, result.end) == (11, 40)
        assert result.direction == Direction.REVERSE
        assert result.similarity == pytest.approx(100.0)

    def test_gaps_removed_from_query(self, genome):
        """Test alignment gaps in the input are ignored."""
        gapped = QUERY[:5] + "--" + QUERY[5:]
        assert locate(gapped, genome).start == 11

    def test_ties_prefer_forward(self, genome):
        """Test equal similarity in both orientations keeps the forward result."""
        aligner = FixedAligner(AlignmentResult("--ACG", "TTACG"))
        result = locate("ACG", genome, aligner=aligner)
        assert result.direction == Direction.FORWARD
        assert aligner.calls == 2

    def test_named_reference(self, reference_dir):
        """Test locating against a registry reference from a directory."""
        result = locate(QUERY, "HXB2", reference_dir=reference_dir)
        assert (result.start, result.end) == (11, 40)
        assert result.reference == "HXB2"

    def test_aligner_failure_propagates(self, genome):
        """Test aligner errors are not swallowed."""
        with pytest.raises(AlignmentUnavailableError):
            locate(QUERY, genome, aligner=FailingAligner())

    def test_empty_query(self, genome):
        """Test the pairwise aligner rejects an empty query."""
        with pytest.raises(AlignmentUnavailableError):
            PairwiseReferenceAligner().align("", REFERENCE)

    def test_query_overhangs_reference_end(self, genome):
        """Test a read running past the reference end is located without an indel."""
        result = locate(REFERENCE[40:] + "CCCCCC", genome)
        assert (result.start, result.end) == (41, 59)
        assert result.similarity == pytest.approx(100.0)
        assert result.direction == Direction.FORWARD
        assert not result.indel

    def test_default_aligner_settings_not_deprecated(self):
        """Test building the default aligner emits no deprecation warnings."""
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            aligner = default_pairwise_aligner()
        assert aligner.end_insertion_score == 0
        assert aligner.end_deletion_score == 0


class TestSequenceLocator:
    """Tests for collection-level location and filtering."""

    def test_unique_sequences_aligned_once(self, genome):
        """Test identical sequences share one alignment."""
        aligner = FixedAligner(AlignmentResult("---ACGT-ACGT--", "AAAACGTTACGTAA"))
        collection = SequenceCollection(
            dna={"r1": "ACGTACGT", "r2": "ACGTACGT", "r3": "ACGTTCGT"},
            title="sample",
        )

        rows = sequence_locator(collection, genome, aligner=aligner)

        assert [row.identifier for row in rows] == ["r1", "r2", "r3"]
        assert all(row.title == "sample" for row in rows)
        assert rows[0].result is rows[1].result
        assert aligner.calls == 4

    def test_filter_by_location(self, genome):
        """Test filtering by start/end and indel."""
        aligner = FixedAligner(AlignmentResult("---ACGT-ACGT--", "AAAACGTTACGTAA"))
        collection = SequenceCollection.from_sequences(["ACGTACGT", "ACGTTCGT"])

        kept = filter_by_location(collection, 4, range(10, 13), reference=genome, aligner=aligner)
        assert kept.size == 2

        assert filter_by_location(collection, 5, 12, reference=genome, aligner=aligner).size == 0
        no_indel = filter_by_location(
            collection, [4], [12], allow_indel=False, reference=genome, aligner=aligner
        )
        assert no_indel.size == 0

    def test_filter_keeps_overhanging_read(self, genome):
        """Test an overhanging read passes an indel-free location filter."""
        collection = SequenceCollection.from_sequences([REFERENCE[40:] + "CCCCCC"])
        kept = filter_by_location(collection, 41, 59, allow_indel=False, reference=genome)
        assert kept.size == 1
