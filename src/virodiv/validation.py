"""
Validation utilities for sequence collections.

Position-wise statistics (entropy, pi, consensus, hypermutation, Poisson
cutoffs) need an alignment: every sequence of the analysed role must have the
same length.
"""

from typing import List, Tuple

from .errors import AlignmentLengthError, EmptyInputError
from .models import SequenceCollection, SequenceType

VALID_NUCLEOTIDE = set("ACGTURYSWKMBDHVN-.*")
VALID_AMINO_ACID = set("ACDEFGHIKLMNPQRSTVWYX-.*BZJUO")


def validate_collection(
    collection: SequenceCollection,
    sequence_type: SequenceType = SequenceType.NUCLEOTIDE,
    require_aligned: bool = True,
    min_sequences: int = 1,
) -> Tuple[bool, List[str], List[str]]:
    """
    Validate a sequence collection before analysis.

    Args:
        collection: Collection to validate
        sequence_type: Which mapping to check
        require_aligned: Whether all sequences must share one length
        min_sequences: Minimum number of sequences required

    Returns:
        Tuple of (is_valid, errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    sequences = collection.mapping(sequence_type)

    if len(sequences) < min_sequences:
        errors.append(
            f"Collection has {len(sequences)} sequence(s); need at least {min_sequences}"
        )

    if require_aligned and sequences:
        lengths = {name: len(seq) for name, seq in sequences.items()}
        first_len = next(iter(lengths.values()))
        inconsistent = [(name, n) for name, n in lengths.items() if n != first_len]
        if inconsistent:
            errors.append(
                f"Inconsistent sequence lengths: expected {first_len}, "
                f"found {inconsistent[:5]}{'...' if len(inconsistent) > 5 else ''}"
            )

    valid = VALID_AMINO_ACID if sequence_type == SequenceType.AMINO_ACID else VALID_NUCLEOTIDE
    unusual = set()
    for seq in sequences.values():
        unusual |= set(seq) - valid
    if unusual:
        warnings.append(f"Unusual characters found: {sorted(unusual)}")

    empty = [name for name, seq in sequences.items() if not seq]
    if empty:
        warnings.append(f"{len(empty)} empty sequence(s), e.g. {empty[0]}")

    return len(errors) == 0, errors, warnings


def require_alignment(
    collection: SequenceCollection,
    sequence_type: SequenceType = SequenceType.NUCLEOTIDE,
) -> List[str]:
    """Return the sequences of a role, checking they form a non-empty alignment.

    Raises:
        EmptyInputError: If the role holds no sequences
        AlignmentLengthError: If sequence lengths differ
    """
    sequences = list(collection.mapping(sequence_type).values())
    if not sequences:
        raise EmptyInputError(f"Collection '{collection.title}' has no sequences")

    first_len = len(sequences[0])
    if any(len(s) != first_len for s in sequences):
        raise AlignmentLengthError(
            f"Sequences in '{collection.title}' are not aligned (lengths differ)"
        )
    return sequences
