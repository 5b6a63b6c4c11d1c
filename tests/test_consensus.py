"""Tests for consensus calling."""

import pytest

from virodiv.consensus import call_ambiguity, consensus
from virodiv.errors import AlignmentLengthError, EmptyInputError
from virodiv.models import SequenceCollection


@pytest.fixture
def diagonal_alignment():
    """Ten sequences; column j holds 10-j A's and j T's."""
    return SequenceCollection.from_sequences(["A" * (10 - i) + "T" * i for i in range(10)])


class TestCallAmbiguity:
    """Tests for IUPAC ambiguity codes."""

    def test_single_symbol(self):
        """Test a single symbol is returned unchanged."""
        assert call_ambiguity(["A"]) == "A"
        assert call_ambiguity(["-"]) == "-"

    def test_two_base_codes(self):
        """Test two-base ambiguity codes."""
        assert call_ambiguity("AT") == "W"
        assert call_ambiguity("GC") == "S"
        assert call_ambiguity("AC") == "M"
        assert call_ambiguity("TG") == "K"
        assert call_ambiguity("GA") == "R"
        assert call_ambiguity("TC") == "Y"

    def test_three_base_codes(self):
        """Test three-base ambiguity codes."""
        assert call_ambiguity("CGT") == "B"
        assert call_ambiguity("AGT") == "D"
        assert call_ambiguity("ACT") == "H"
        assert call_ambiguity("ACG") == "V"

    def test_uncallable_sets(self):
        """Test four bases, gaps mixed with bases and empty sets give N."""
        assert call_ambiguity("ACGT") == "N"
        assert call_ambiguity("A-") == "N"
        assert call_ambiguity([]) == "N"


class TestConsensus:
    """Tests for consensus function."""

    def test_majority_consensus(self, diagonal_alignment):
        """Test the default cutoff calls ties as ambiguity codes."""
        assert consensus(diagonal_alignment) == "AAAAAWTTTT"

    def test_strict_cutoff(self, diagonal_alignment):
        """Test columns without a dominant symbol become N."""
        assert consensus(diagonal_alignment, cutoff=0.7) == "AAAANNNTTT"

    def test_low_cutoff_keeps_minorities(self):
        """Test a 15% minority is included only below its frequency."""
        collection = SequenceCollection.from_sequences(["A"] * 3 + ["G"] * 17)
        assert consensus(collection, cutoff=0.2) == "G"
        assert consensus(collection, cutoff=0.1) == "R"

    def test_gap_majority(self):
        """Test gaps take part in the majority call."""
        collection = SequenceCollection.from_sequences(["A-", "A-", "AC"])
        assert consensus(collection) == "A-"

    def test_length_matches_alignment(self, diagonal_alignment):
        """Test the consensus has the alignment's length."""
        result = consensus(diagonal_alignment, cutoff=1.0)
        assert len(result) == diagonal_alignment.alignment_length()
        assert result == "ANNNNNNNNN"

    @pytest.mark.parametrize("cutoff", [0, -0.1, 1.5])
    def test_invalid_cutoff(self, diagonal_alignment, cutoff):
        """Test cutoffs outside (0, 1] are rejected."""
        with pytest.raises(ValueError):
            consensus(diagonal_alignment, cutoff=cutoff)

    def test_empty_collection(self):
        """Test an empty collection raises EmptyInputError."""
        with pytest.raises(EmptyInputError):
            consensus(SequenceCollection())

    def test_unaligned(self):
        """Test unequal lengths raise AlignmentLengthError."""
        with pytest.raises(AlignmentLengthError):
            consensus(SequenceCollection.from_sequences(["ACGT", "AC"]))

    def test_idempotent_on_uniform_set(self):
        """Test re-calling the consensus of a uniform set at 1.0 is stable."""
        collection = SequenceCollection.from_sequences(["AC-GT"] * 4)
        first = consensus(collection, cutoff=1.0)
        again = consensus(SequenceCollection.from_sequences([first] * 4), cutoff=1.0)
        assert first == again == "AC-GT"
