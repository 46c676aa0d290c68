"""
Join engine.

- sanitizer: cell values -> join-safe scalars
- indexer: per-dataset key groups and key counts
- stats: row-count estimates per join type
- executor: cartesian key join with column renaming and match status
"""

from .sanitizer import sanitize, sanitize_record, sanitize_rows
from .indexer import KeyIndexer, normalize_key
from .stats import JoinStatsCalculator, calculate_join_stats
from .executor import JoinExecutor, JoinResult, clean_file_name, join_datasets

__all__ = [
    'sanitize',
    'sanitize_record',
    'sanitize_rows',
    'KeyIndexer',
    'normalize_key',
    'JoinStatsCalculator',
    'calculate_join_stats',
    'JoinExecutor',
    'JoinResult',
    'clean_file_name',
    'join_datasets',
]
