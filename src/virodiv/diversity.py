"""
Diversity and distance statistics for sequence alignments.

This module provides:
- Shannon entropy per alignment column (natural logarithm)
- Nucleotide pairwise diversity (pi)
- Pairwise distance histogram over all sequence pairs
"""

import itertools
import logging
import math
from collections import Counter
from typing import Dict, Iterable

from .errors import DegenerateInputError
from .models import SequenceCollection, SequenceType
from .translation import STOP
from .validation import require_alignment

logger = logging.getLogger(__name__)

NUCLEOTIDES = ("A", "C", "G", "T")


def column_entropy(symbols: Iterable[str]) -> float:
    """Shannon entropy of one alignment column.

    H = -sum(p_i * ln(p_i)) over symbol frequencies. Stop codons (``*``) are
    excluded; gaps count as a symbol. A column left empty has entropy 0.

    Returns:
        Entropy in nats; 0 for a monomorphic column
    """
    counts = Counter(s for s in symbols if s != STOP)
    total = sum(counts.values())
    if total == 0:
        return 0.0

    entropy = 0.0
    for count in counts.values():
        freq = count / total
        entropy -= freq * math.log(freq)
    return entropy


def shannon_entropy(
    collection: SequenceCollection,
    sequence_type: SequenceType = SequenceType.NUCLEOTIDE,
) -> Dict[int, float]:
    """Shannon entropy at each position of an alignment.

    Args:
        collection: Aligned collection
        sequence_type: Analyse the nucleotide or the amino-acid mapping

    Returns:
        Mapping of 1-based position to entropy

    Example:
        The LANL Entropy-One sample input gives 0.0 at position 3 and
        0.639 at position 14 (amino acids).
    """
    sequences = require_alignment(collection, sequence_type)
    return {
        position: column_entropy(column)
        for position, column in enumerate(zip(*sequences), start=1)
    }


def nucleotide_pi(collection: SequenceCollection) -> float:
    """Nucleotide pairwise diversity (pi).

    Per column only A, C, G and T are kept; columns with fewer than two bases
    are skipped. pi is the number of mismatching base pairs over the number of
    base pairs, summed over all columns, rounded to 5 decimals.

    Raises:
        DegenerateInputError: If no column holds two or more bases
    """
    sequences = require_alignment(collection)

    mismatches = 0
    combinations = 0
    for column in zip(*sequences):
        bases = [b for b in column if b in NUCLEOTIDES]
        n = len(bases)
        if n < 2:
            continue
        counts = Counter(bases)
        combinations += n * (n - 1) // 2
        mismatches += sum(
            counts[x] * counts[y] for x, y in itertools.combinations(NUCLEOTIDES, 2)
        )

    if combinations == 0:
        raise DegenerateInputError(
            f"Nucleotide diversity undefined for '{collection.title}': no column has two or more bases"
        )
    logger.debug(f"pi: {mismatches} mismatching pairs over {combinations} pairs")
    return round(mismatches / combinations, 5)


def hamming_distance(seq1: str, seq2: str) -> int:
    """Number of differing positions, plus the length difference."""
    diff = sum(1 for x, y in zip(seq1, seq2) if x != y)
    return diff + abs(len(seq1) - len(seq2))


def pairwise_distance_histogram(collection: SequenceCollection) -> Dict[int, int]:
    """Tabulate the number of differing positions over all sequence pairs.

    Identical sequences contribute distance 0 once per pair; each pair of
    distinct sequences contributes its distance weighted by the product of
    their multiplicities.

    Returns:
        Mapping of distance to number of sequence pairs, keys ascending
    """
    sequences = require_alignment(collection)
    frequencies = Counter(sequences)

    histogram: Counter = Counter()
    for count in frequencies.values():
        identical_pairs = count * (count - 1) // 2
        if identical_pairs:
            histogram[0] += identical_pairs

    for seq1, seq2 in itertools.combinations(frequencies, 2):
        histogram[hamming_distance(seq1, seq2)] += frequencies[seq1] * frequencies[seq2]

    return dict(sorted(histogram.items()))


tn93 = pairwise_distance_histogram
