"""
Poisson cutoff for minority variants.

A column's variant count is the number of sequences that disagree with the
column's most frequent symbol. Under a sequencing-error-only model the number
of columns with k variants follows L * Poisson(N * error_rate). The cutoff is
the smallest k observed far more often than that model predicts; mutations
seen at least that many times are treated as real.

Ref: Zhou, et al. J Virol 2015 (https://www.ncbi.nlm.nih.gov/pubmed/26041299)
"""

import logging
from collections import Counter
from typing import Callable, Dict, List, Mapping, Optional

from .models import SequenceCollection
from .stats import PoissonModel
from .validation import require_alignment

logger = logging.getLogger(__name__)


def first_exceeding_count(
    observed: Mapping[int, int],
    expected: Callable[[int], float],
    k_max: int,
    fold_cutoff: float,
) -> Optional[int]:
    """Smallest k in 1..k_max with observed[k] >= fold_cutoff * expected(k).

    Counts missing from ``observed`` are treated as zero. Returns None when no
    k in range qualifies; counts above ``k_max`` are never considered.
    """
    for k in range(1, k_max + 1):
        if observed.get(k, 0) >= fold_cutoff * expected(k):
            return k
    return None


def variant_distribution(sequences: List[str]) -> Dict[int, int]:
    """Number of alignment columns per variant count, keys ascending."""
    total = len(sequences)
    variants = [total - max(Counter(column).values()) for column in zip(*sequences)]
    return dict(sorted(Counter(variants).items()))


def poisson_minority_cutoff(
    collection: SequenceCollection,
    error_rate: float = 0.0001,
    fold_cutoff: float = 20,
) -> int:
    """Minimum count at which a minority variant is considered real.

    Args:
        collection: Aligned nucleotide collection
        error_rate: Estimated per-base sequencing error rate
        fold_cutoff: How many times the Poisson expectation the observed
            column count must reach (20 means < 5% attributable to error)

    Returns:
        The cutoff k (variants seen >= k times are real); 0 for an empty
        collection. If no k qualifies, the largest observed variant count
        (at least 1).
    """
    if collection.size == 0:
        return 0

    sequences = require_alignment(collection)
    length = len(sequences[0])
    model = PoissonModel(len(sequences) * error_rate)

    observed = variant_distribution(sequences)
    max_count = max(observed) if observed else 0

    cutoff = first_exceeding_count(
        observed,
        lambda k: length * model.pmf(k),
        max_count,
        fold_cutoff,
    )
    if cutoff is None:
        cutoff = max(max_count, 1)
        logger.debug(f"No variant count exceeded the Poisson expectation; using {cutoff}")

    logger.debug(
        f"Poisson minority cutoff for '{collection.title}': {cutoff} "
        f"(lambda={model.rate:g}, columns={length})"
    )
    return cutoff
