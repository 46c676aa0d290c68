"""
Join Check

Validates a materialized join against its inputs:
- Estimate agreement (estimated vs. actual row count)
- Expansion (output rows vs. largest input, flags many-to-many keys)
- Key coverage (share of each dataset's keys found in another dataset)
- Unjoinable rows (blank or missing keys) and per-key truncation
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from datalink.engine.executor import JoinResult
from datalink.engine.indexer import UNJOINABLE, KeyIndexer, normalize_key
from datalink.models import Dataset, JoinCandidate, JoinStats
from datalink.utils.logging_utils import get_logger

logger = get_logger(__name__)


class JoinChecker:
    """
    Verification report for one join.

    Example:
        >>> checker = JoinChecker()
        >>> report = checker.verify(datasets, candidate, result, stats)
        >>> report['status']
        'pass_with_warnings'
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the Join Checker.

        Args:
            config: Overrides for the thresholds below
        """
        self.config = {
            'max_expansion_ratio': 2.0,  # Warn if output > 2x the largest input
            'min_key_coverage': 0.5,     # Warn if <50% of a dataset's keys match elsewhere
            'check_estimate': True,
            'check_expansion': True,
            'check_coverage': True,
        }

        if config:
            self.config.update(config)

    def verify(
        self,
        datasets: List[Dataset],
        candidate: JoinCandidate,
        result: JoinResult,
        stats: Optional[JoinStats] = None
    ) -> Dict[str, Any]:
        """
        Verify a join result.

        Args:
            datasets: Datasets the join was run on
            candidate: Candidate used for the join
            result: Executor output
            stats: Estimates computed before the join (optional)

        Returns:
            Report with status 'pass', 'pass_with_warnings' or 'fail'
        """
        logger.info(f"Verifying {result.join_type.value} join on '{candidate.key_name}'")

        report = {
            'key_name': candidate.key_name,
            'join_type': result.join_type.value,
            'datasets': [ds.name for ds in datasets],
            'timestamp': datetime.now().isoformat(),
            'status': 'pass',
            'errors': [],
            'warnings': [],
            'checks': {}
        }

        if self.config['check_estimate'] and stats is not None:
            self._check_estimate(result, stats, report)

        if self.config['check_expansion']:
            self._check_expansion(datasets, result, report)

        if self.config['check_coverage']:
            self._check_coverage(datasets, candidate, report)

        self._check_truncation(result, report)

        if report['errors']:
            report['status'] = 'fail'
        elif report['warnings']:
            report['status'] = 'pass_with_warnings'

        logger.info(f"  Status: {report['status']}")
        logger.info(f"  Errors: {len(report['errors'])}, Warnings: {len(report['warnings'])}")

        return report

    def _check_estimate(self, result: JoinResult, stats: JoinStats, report: Dict[str, Any]) -> None:
        """The estimator and the executor must agree exactly."""
        expected = stats.get(result.join_type)
        actual = len(result.records) + result.dropped_rows

        report['checks']['estimate'] = {
            'expected_rows': expected,
            'actual_rows': len(result.records),
            'status': 'pass'
        }

        if expected is not None and expected != len(result.records):
            report['errors'].append({
                'check': 'estimate',
                'expected': expected,
                'actual': len(result.records),
                'message': f'Estimated {expected} rows but the join produced {len(result.records)}'
                           + (f' ({actual} before truncation)' if result.dropped_rows else '')
            })
            report['checks']['estimate']['status'] = 'fail'

    def _check_expansion(self, datasets: List[Dataset], result: JoinResult, report: Dict[str, Any]) -> None:
        """Flag joins whose output dwarfs the largest input (duplicate keys on several sides)."""
        largest = max((ds.row_count for ds in datasets), default=0)
        rows = len(result.records)
        ratio = rows / largest if largest else 0.0

        report['checks']['expansion'] = {
            'largest_input_rows': largest,
            'output_rows': rows,
            'expansion_ratio': ratio,
            'status': 'pass'
        }

        if ratio > self.config['max_expansion_ratio']:
            report['warnings'].append({
                'check': 'expansion',
                'type': 'row_explosion',
                'expansion_ratio': ratio,
                'message': f'Output is {ratio:.1f}x the largest input - duplicate keys in several files multiply rows'
            })
            report['checks']['expansion']['status'] = 'warning'

    def _check_coverage(self, datasets: List[Dataset], candidate: JoinCandidate, report: Dict[str, Any]) -> None:
        """Share of each dataset's distinct keys that also occur in another dataset."""
        indexer = KeyIndexer(candidate)
        key_sets = [set(indexer.count(ds)) for ds in datasets]
        per_dataset = {}

        for idx, ds in enumerate(datasets):
            key_col = indexer.key_column(ds)
            if key_col is None:
                report['warnings'].append({
                    'check': 'coverage',
                    'type': 'unmapped_dataset',
                    'dataset': ds.name,
                    'message': f'No key column mapped for {ds.name} - it is missing for every key'
                })
                per_dataset[ds.name] = {'mapped': False}
                continue

            others = set().union(*(s for i, s in enumerate(key_sets) if i != idx))
            keys = key_sets[idx]
            coverage = len(keys & others) / len(keys) if keys else 0.0
            unjoinable = sum(1 for row in ds.rows if normalize_key(row.get(key_col)) == UNJOINABLE)

            per_dataset[ds.name] = {
                'mapped': True,
                'key_column': key_col,
                'distinct_keys': len(keys),
                'coverage': coverage,
                'unjoinable_rows': unjoinable,
            }

            if coverage < self.config['min_key_coverage']:
                report['warnings'].append({
                    'check': 'coverage',
                    'type': 'low_coverage',
                    'dataset': ds.name,
                    'coverage': coverage,
                    'message': f'Only {coverage:.1%} of keys in {ds.name} match another file'
                })

            if unjoinable:
                report['warnings'].append({
                    'check': 'coverage',
                    'type': 'unjoinable_rows',
                    'dataset': ds.name,
                    'rows': unjoinable,
                    'message': f'{unjoinable} rows in {ds.name} have a blank key and are left out'
                })

        report['checks']['coverage'] = per_dataset

    def _check_truncation(self, result: JoinResult, report: Dict[str, Any]) -> None:
        report['checks']['truncation'] = {
            'truncated_keys': len(result.truncated_keys),
            'dropped_rows': result.dropped_rows,
        }

        if result.truncated_keys:
            report['warnings'].append({
                'check': 'truncation',
                'type': 'truncated_keys',
                'keys': sorted(result.truncated_keys),
                'message': f'{len(result.truncated_keys)} keys hit the combination cap; '
                           f'{result.dropped_rows} rows were dropped'
            })
