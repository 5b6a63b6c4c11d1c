"""
Statistical primitives: Fisher's exact test and the Poisson distribution.

Both are stateless wrappers around scipy.stats so the detectors that use them
can be tested independently.
"""

from dataclasses import dataclass
from typing import Dict, Sequence

from scipy import stats as _scipy_stats


def fisher_exact_test(table: Sequence[Sequence[int]]) -> float:
    """Two-tailed Fisher's exact test p-value for a 2x2 contingency table.

    Args:
        table: [[n11, n12], [n21, n22]] of non-negative counts

    Returns:
        Two-tailed p-value in [0, 1]
    """
    if len(table) != 2 or any(len(row) != 2 for row in table):
        raise ValueError(f"Expected a 2x2 table, got {table}")
    if any(n < 0 for row in table for n in row):
        raise ValueError(f"Contingency table counts must be non-negative: {table}")

    result = _scipy_stats.fisher_exact(
        [[int(n) for n in row] for row in table], alternative="two-sided"
    )
    return min(1.0, float(result[1]))


def poisson_pmf(rate: float, k: int) -> float:
    """Probability of observing k events under a Poisson(rate) model."""
    return float(_scipy_stats.poisson.pmf(k, rate))


@dataclass(frozen=True)
class PoissonModel:
    """Poisson model with rate parameter lambda.

    Attributes:
        rate: Expected number of events (lambda >= 0)
    """
    rate: float

    def __post_init__(self):
        if self.rate < 0:
            raise ValueError(f"Poisson rate must be non-negative, got {self.rate}")

    def pmf(self, k: int) -> float:
        return poisson_pmf(self.rate, k)

    def distribution(self, k_max: int) -> Dict[int, float]:
        """Probability mass for every k in 0..k_max."""
        if k_max < 0:
            return {}
        masses = _scipy_stats.poisson.pmf(list(range(k_max + 1)), self.rate)
        return {k: float(p) for k, p in enumerate(masses)}
