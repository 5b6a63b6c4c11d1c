"""
Consensus calling with IUPAC ambiguity codes.

For each alignment column every symbol (gaps included) whose frequency meets
the majority cutoff is kept; the kept set is reported as one IUPAC letter.
"""

import logging
from collections import Counter
from typing import FrozenSet, Iterable, Mapping

from .models import SequenceCollection
from .validation import require_alignment

logger = logging.getLogger(__name__)

AMBIGUITY_NOT_CALLED = "N"

IUPAC_AMBIGUITY: Mapping[FrozenSet[str], str] = {
    frozenset("AT"): "W",
    frozenset("CG"): "S",
    frozenset("AC"): "M",
    frozenset("GT"): "K",
    frozenset("AG"): "R",
    frozenset("CT"): "Y",
    frozenset("CGT"): "B",
    frozenset("AGT"): "D",
    frozenset("ACT"): "H",
    frozenset("ACG"): "V",
}


def call_ambiguity(symbols: Iterable[str]) -> str:
    """Map a set of symbols to a single IUPAC code.

    A single symbol is returned as is; two- and three-base sets use their
    ambiguity code; anything else (including an empty set) is N.
    """
    key = frozenset(symbols)
    if len(key) == 1:
        return next(iter(key))
    return IUPAC_AMBIGUITY.get(key, AMBIGUITY_NOT_CALLED)


def consensus(collection: SequenceCollection, cutoff: float = 0.5) -> str:
    """Build the consensus sequence of an aligned nucleotide collection.

    Args:
        collection: Aligned nucleotide collection
        cutoff: Majority fraction in (0, 1]; a column with 15% A and 85% G is
            called G at 0.2 and R at 0.1

    Returns:
        Consensus string with the alignment's length

    Raises:
        ValueError: If cutoff is outside (0, 1]
        EmptyInputError: If the collection has no sequences
        AlignmentLengthError: If the sequences are not aligned
    """
    if not 0 < cutoff <= 1:
        raise ValueError(f"Consensus cutoff must be in (0, 1], got {cutoff}")

    sequences = require_alignment(collection)
    total = len(sequences)

    calls = []
    for column in zip(*sequences):
        counts = Counter(column)
        kept = [symbol for symbol, n in counts.items() if n / total >= cutoff]
        calls.append(call_ambiguity(kept))

    result = "".join(calls)
    logger.debug(f"Consensus of {total} sequences at cutoff {cutoff}: {len(result)} columns")
    return result
