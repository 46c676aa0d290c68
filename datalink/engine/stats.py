"""
Join statistics.

Estimates how many rows each join type would produce from per-dataset key
counts alone. A dataset that lacks a key contributes one placeholder row
to OUTER/ADDITIVE/LEFT combinations, while duplicates on every side
multiply, mirroring the cartesian expansion done by the executor.
"""

from typing import Dict, List, Optional

from datalink.engine.indexer import KeyIndexer, ordered_keys
from datalink.models import Dataset, JoinCandidate, JoinStats
from datalink.utils.logging_utils import get_logger

logger = get_logger(__name__)


def _product(values) -> int:
    result = 1
    for v in values:
        result *= v
    return result


class JoinStatsCalculator:
    """
    Estimates INNER / OUTER / LEFT / ADDITIVE row counts.

    Args:
        max_combinations_per_key: Optional cap applied to each key's
            contribution, matching a capped JoinExecutor

    Example:
        >>> calc = JoinStatsCalculator()
        >>> calc.estimate([{"a": 1, "b": 2}, {"b": 3, "c": 1}]).as_dict()
        {'INNER': 6, 'OUTER': 8, 'LEFT': 7, 'ADDITIVE': 8}
    """

    def __init__(self, max_combinations_per_key: Optional[int] = None):
        if max_combinations_per_key is not None and max_combinations_per_key < 1:
            raise ValueError("max_combinations_per_key must be a positive integer")
        self.max_combinations_per_key = max_combinations_per_key

    def _cap(self, n: int) -> int:
        if self.max_combinations_per_key is None:
            return n
        return min(n, self.max_combinations_per_key)

    def estimate(self, key_counts: List[Dict[str, int]]) -> JoinStats:
        """
        Estimate row counts from per-dataset key -> occurrence maps.

        Args:
            key_counts: One map per dataset, in dataset order; dataset 0 is
                the left side of a LEFT join

        Returns:
            JoinStats (OUTER and ADDITIVE are always equal)
        """
        if not key_counts:
            return JoinStats()

        inner = outer = left = 0

        for key in ordered_keys(key_counts):
            counts = [m.get(key, 0) for m in key_counts]

            inner += self._cap(_product(counts))
            outer += self._cap(_product(max(c, 1) for c in counts))

            if counts[0] > 0:
                left += self._cap(counts[0] * _product(max(c, 1) for c in counts[1:]))

        stats = JoinStats(inner=inner, outer=outer, left=left, additive=outer)
        logger.debug(f"Join estimate: {stats.as_dict()}")
        return stats

    def calculate(self, datasets: List[Dataset], candidate: JoinCandidate) -> JoinStats:
        """Count keys for every dataset under ``candidate`` and estimate."""
        return self.estimate(KeyIndexer(candidate).count_all(datasets))


def calculate_join_stats(
    datasets: List[Dataset],
    candidate: JoinCandidate,
    max_combinations_per_key: Optional[int] = None
) -> JoinStats:
    """Convenience wrapper around JoinStatsCalculator.calculate."""
    return JoinStatsCalculator(max_combinations_per_key).calculate(datasets, candidate)
