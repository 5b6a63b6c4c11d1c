"""
Data models for sequence collections and analysis results.

This module defines the core data structures used throughout virodiv:
sequence collections, reference genomes, pairwise alignments, locator
results and hypermutation records.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import AlignmentLengthError
from .translation import GAP, STOP, translate as translate_sequence


class SequenceType(Enum):
    """Payload role of a sequence mapping."""
    NUCLEOTIDE = "nt"
    AMINO_ACID = "aa"


class Direction(Enum):
    """Orientation of a query relative to the reference."""
    FORWARD = "+"
    REVERSE = "-"


@dataclass
class SequenceCollection:
    """Named sequences sharing identifiers across nucleotide, amino-acid and
    quality roles.

    Transformations return new collections with copied mappings; only
    ``translate`` fills ``aa`` in place.

    Attributes:
        dna: Identifier to nucleotide string
        aa: Identifier to amino-acid string
        qc: Identifier to quality string
        title: Collection title (file stem when read from disk)
        file: Originating file, if any
    """
    dna: Dict[str, str] = field(default_factory=dict)
    aa: Dict[str, str] = field(default_factory=dict)
    qc: Dict[str, str] = field(default_factory=dict)
    title: str = ""
    file: Optional[str] = None

    @classmethod
    def from_sequences(cls, sequences: Iterable[str], tag: str = "seq") -> "SequenceCollection":
        """Build a collection from bare strings, named ``tag_1``, ``tag_2``, ..."""
        dna = {f"{tag}_{n}": seq for n, seq in enumerate(sequences, start=1)}
        return cls(dna=dna, title=tag)

    def __len__(self) -> int:
        return len(self.dna)

    @property
    def size(self) -> int:
        """Number of nucleotide sequences."""
        return len(self.dna)

    @property
    def identifiers(self) -> List[str]:
        return list(self.dna)

    def mapping(self, sequence_type: SequenceType = SequenceType.NUCLEOTIDE) -> Dict[str, str]:
        """Return the mapping for a payload role."""
        if sequence_type == SequenceType.AMINO_ACID:
            return self.aa
        return self.dna

    def is_aligned(self, sequence_type: SequenceType = SequenceType.NUCLEOTIDE) -> bool:
        """True if every sequence in the role has the same length."""
        lengths = {len(s) for s in self.mapping(sequence_type).values()}
        return len(lengths) <= 1

    def alignment_length(self, sequence_type: SequenceType = SequenceType.NUCLEOTIDE) -> int:
        """Length shared by all sequences of the role.

        Raises:
            AlignmentLengthError: If the sequences differ in length
        """
        sequences = self.mapping(sequence_type)
        if not sequences:
            return 0
        if not self.is_aligned(sequence_type):
            raise AlignmentLengthError(
                f"Sequences in '{self.title}' are not aligned (lengths differ)"
            )
        return len(next(iter(sequences.values())))

    def copy(self) -> "SequenceCollection":
        return SequenceCollection(
            dna=dict(self.dna),
            aa=dict(self.aa),
            qc=dict(self.qc),
            title=self.title,
            file=self.file,
        )

    def sub(self, identifiers: Iterable[str]) -> "SequenceCollection":
        """Subset holding the given identifiers that have a nucleotide sequence."""
        dna, aa, qc = {}, {}, {}
        for name in identifiers:
            if name not in self.dna:
                continue
            dna[name] = self.dna[name]
            if name in self.aa:
                aa[name] = self.aa[name]
            if name in self.qc:
                qc[name] = self.qc[name]
        return SequenceCollection(dna=dna, aa=aa, qc=qc, title=self.title, file=self.file)

    def translate(self, codon_position: int = 0) -> None:
        """Translate every nucleotide sequence into ``aa`` (in place)."""
        self.aa = {
            name: translate_sequence(seq, codon_position)
            for name, seq in self.dna.items()
        }

    def split_stop_codons(
        self, codon_position: int = 0
    ) -> Tuple["SequenceCollection", "SequenceCollection"]:
        """Split into sequences with and without stop codons.

        Translates the collection first.

        Returns:
            Tuple of (with_stop, without_stop)
        """
        self.translate(codon_position)
        with_stop = [name for name, aa in self.aa.items() if STOP in aa]
        stop_set = set(with_stop)
        without_stop = [name for name in self.aa if name not in stop_set]

        stopped = self.sub(with_stop)
        stopped.title = f"{self.title}_stop"
        return stopped, self.sub(without_stop)

    def _with_role(self, sequence_type: SequenceType, sequences: Dict[str, str]) -> "SequenceCollection":
        result = self.copy()
        if sequence_type == SequenceType.AMINO_ACID:
            result.aa = sequences
        else:
            result.dna = sequences
        result.title = f"{self.title}_strip"
        return result

    def gap_strip(self, sequence_type: SequenceType = SequenceType.NUCLEOTIDE) -> "SequenceCollection":
        """Remove every alignment column that contains a gap."""
        sequences = self.mapping(sequence_type)
        length = self.alignment_length(sequence_type)
        keep = [
            p for p in range(length)
            if not any(s[p] == GAP for s in sequences.values())
        ]
        stripped = {
            name: "".join(seq[p] for p in keep)
            for name, seq in sequences.items()
        }
        return self._with_role(sequence_type, stripped)

    def gap_strip_ends(self, sequence_type: SequenceType = SequenceType.NUCLEOTIDE) -> "SequenceCollection":
        """Remove gap-containing columns at both ends of the alignment only."""
        sequences = self.mapping(sequence_type)
        length = self.alignment_length(sequence_type)

        def has_gap(p: int) -> bool:
            return any(s[p] == GAP for s in sequences.values())

        start = 0
        while start < length and has_gap(start):
            start += 1
        end = length
        while end > start and has_gap(end - 1):
            end -= 1

        stripped = {name: seq[start:end] for name, seq in sequences.items()}
        return self._with_role(sequence_type, stripped)


@dataclass(frozen=True)
class ReferenceGenome:
    """A named reference genome and its coordinate convention.

    Attributes:
        name: Registry identifier (HXB2, NL43, MAC239)
        accession: GenBank accession of the reference sequence
        description: Human-readable description
        numbering: Coordinate convention used for reported positions
        sequence: Reference nucleotide sequence (empty until loaded)
    """
    name: str
    accession: str = ""
    description: str = ""
    numbering: str = "1-based nucleotide positions on the reference genome"
    sequence: str = ""

    def __len__(self) -> int:
        return len(self.sequence)


@dataclass(frozen=True)
class AlignmentResult:
    """A pairwise alignment of a query against a reference."""
    aligned_query: str
    aligned_reference: str
    gap: str = GAP

    def __post_init__(self):
        if len(self.aligned_query) != len(self.aligned_reference):
            raise ValueError(
                "Aligned query and reference must have equal length "
                f"({len(self.aligned_query)} != {len(self.aligned_reference)})"
            )

    def __len__(self) -> int:
        return len(self.aligned_query)


@dataclass(frozen=True)
class LocatorResult:
    """Location of a query on a reference genome.

    Attributes:
        start: First reference position covered by the query (1-based)
        end: Last reference position covered by the query (1-based)
        similarity: Percent identity over the covered span (0-100)
        indel: Whether the covered span contains a gap in either string
        direction: Orientation of the query that produced this result
        aligned_query: Query row of the alignment
        aligned_reference: Reference row of the alignment
        reference: Name of the reference genome
    """
    start: int
    end: int
    similarity: float
    indel: bool
    direction: Direction
    aligned_query: str
    aligned_reference: str
    reference: str = ""


@dataclass(frozen=True)
class LocatorRow:
    """One locator report row: a sequence identifier and its location."""
    title: str
    identifier: str
    result: LocatorResult


@dataclass(frozen=True)
class HypermutationRecord:
    """APOBEC3G/F statistics for one sequence.

    Attributes:
        identifier: Sequence identifier
        a: G->A mutations at APOBEC motif positions
        b: Usable (non-gap) APOBEC motif positions
        c: G->A mutations at control positions
        d: Usable (non-gap) control positions
        rate_ratio: (a/b)/(c/d); nan or inf when undefined
        p_value: Two-tailed Fisher's exact test p-value
        hypermutated: Final classification
        poisson_outlier: Flagged by the Poisson outlier criterion
    """
    identifier: str
    a: int
    b: int
    c: int
    d: int
    rate_ratio: float
    p_value: float
    hypermutated: bool = False
    poisson_outlier: bool = False

    def as_tuple(self) -> Tuple[str, int, int, int, int, float, float]:
        return (self.identifier, self.a, self.b, self.c, self.d, self.rate_ratio, self.p_value)


@dataclass
class HypermutationResult:
    """Outcome of APOBEC3G/F hypermutation screening.

    Attributes:
        hypermutated: Sequences classified as hypermutated
        filtered: Remaining sequences
        records: One record per input sequence, in input order
        outlier_cutoff: Poisson outlier cutoff, None if the criterion did not run
    """
    hypermutated: SequenceCollection
    filtered: SequenceCollection
    records: List[HypermutationRecord] = field(default_factory=list)
    outlier_cutoff: Optional[int] = None

    @property
    def hypermutated_records(self) -> List[HypermutationRecord]:
        return [r for r in self.records if r.hypermutated]
