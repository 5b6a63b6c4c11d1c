"""Tests for the validation module."""

import pytest

from virodiv.errors import AlignmentLengthError, EmptyInputError
from virodiv.models import SequenceCollection, SequenceType
from virodiv.validation import require_alignment, validate_collection


class TestValidateCollection:
    """Tests for validate_collection function."""

    def test_valid_alignment(self):
        """Test an aligned nucleotide collection passes."""
        collection = SequenceCollection.from_sequences(["ACGT", "AC-T", "ACGA"])

        is_valid, errors, warnings = validate_collection(collection)

        assert is_valid
        assert errors == []
        assert warnings == []

    def test_inconsistent_lengths(self):
        """Test unequal lengths are an error when alignment is required."""
        collection = SequenceCollection.from_sequences(["ACGT", "ACG"])

        is_valid, errors, warnings = validate_collection(collection)

        assert not is_valid
        assert any("Inconsistent sequence lengths" in e for e in errors)

    def test_unaligned_allowed(self):
        """Test unequal lengths pass when alignment is not required."""
        collection = SequenceCollection.from_sequences(["ACGT", "ACG"])

        is_valid, errors, warnings = validate_collection(collection, require_aligned=False)

        assert is_valid

    def test_too_few_sequences(self):
        """Test the minimum sequence count is enforced."""
        collection = SequenceCollection.from_sequences(["ACGT"])

        is_valid, errors, warnings = validate_collection(collection, min_sequences=2)

        assert not is_valid
        assert "need at least 2" in errors[0]

    def test_unusual_characters_warn(self):
        """Test unexpected symbols produce a warning, not an error."""
        collection = SequenceCollection.from_sequences(["ACGT", "ACZT"])

        is_valid, errors, warnings = validate_collection(collection)

        assert is_valid
        assert any("Unusual characters" in w for w in warnings)

    def test_amino_acid_role(self):
        """Test amino-acid symbols are accepted for the amino-acid role."""
        collection = SequenceCollection(aa={"p1": "MKLV", "p2": "MK*V"})

        is_valid, errors, warnings = validate_collection(collection, SequenceType.AMINO_ACID)

        assert is_valid
        assert warnings == []


class TestRequireAlignment:
    """Tests for require_alignment function."""

    def test_returns_sequences(self):
        """Test the sequences of the role are returned in order."""
        collection = SequenceCollection.from_sequences(["ACGT", "TTTT"])
        assert require_alignment(collection) == ["ACGT", "TTTT"]

    def test_empty_collection(self):
        """Test an empty collection raises EmptyInputError."""
        with pytest.raises(EmptyInputError):
            require_alignment(SequenceCollection())

    def test_unaligned_collection(self):
        """Test unequal lengths raise AlignmentLengthError."""
        collection = SequenceCollection.from_sequences(["ACGT", "ACG"])
        with pytest.raises(AlignmentLengthError):
            require_alignment(collection)

    def test_errors_are_value_errors(self):
        """Test degenerate-input errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            require_alignment(SequenceCollection())
