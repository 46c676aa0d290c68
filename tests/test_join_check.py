"""
Unit tests for join verification
"""

from datalink.engine import JoinExecutor, calculate_join_stats
from datalink.models import ColumnMapping, Dataset, JoinCandidate, JoinStats, JoinType
from datalink.verifiers.join_check import JoinChecker


class TestJoinChecker:
    """Test cases for JoinChecker"""

    def setup_method(self):
        self.checker = JoinChecker()

    def test_clean_join_passes(self, datasets, candidate):
        stats = calculate_join_stats(datasets, candidate)
        result = JoinExecutor().run(datasets, candidate, JoinType.OUTER)

        report = self.checker.verify(datasets, candidate, result, stats)

        assert report["status"] == "pass"
        assert report["checks"]["estimate"]["expected_rows"] == 8
        assert report["checks"]["coverage"]["customers.xlsx"]["coverage"] == 0.6
        assert report["checks"]["coverage"]["orders.csv"]["coverage"] == 0.75

    def test_estimate_mismatch_fails(self, datasets, candidate):
        result = JoinExecutor().run(datasets, candidate, JoinType.INNER)

        report = self.checker.verify(datasets, candidate, result, JoinStats(inner=99))

        assert report["status"] == "fail"
        assert report["errors"][0]["check"] == "estimate"

    def test_truncation_warns(self, datasets, candidate):
        stats = calculate_join_stats(datasets, candidate, max_combinations_per_key=1)
        result = JoinExecutor(max_combinations_per_key=1).run(datasets, candidate, JoinType.OUTER)

        report = self.checker.verify(datasets, candidate, result, stats)

        assert report["status"] == "pass_with_warnings"
        assert report["checks"]["truncation"]["dropped_rows"] == 2
        assert [w["check"] for w in report["warnings"]] == ["truncation"]

    def test_unmapped_and_blank_keys_warn(self, customers, orders, candidate):
        noisy = customers.model_copy(update={"rows": [*customers.rows, {"Name": "no key"}]})
        extra = Dataset(name="notes.csv", columns=["note"], rows=[{"note": "x"}])
        datasets = [noisy, orders, extra]

        result = JoinExecutor().run(datasets, candidate, JoinType.OUTER)
        report = self.checker.verify(datasets, candidate, result)

        types = {w["type"] for w in report["warnings"]}
        assert {"unmapped_dataset", "unjoinable_rows"} <= types
        assert "estimate" not in report["checks"]

    def test_expansion_warns(self):
        a = Dataset(name="a.csv", columns=["k"], rows=[{"k": 1}] * 3)
        b = Dataset(name="b.csv", columns=["k"], rows=[{"k": 1}] * 3)
        candidate = JoinCandidate(key_name="k", column_mappings=[
            ColumnMapping(file_name="a.csv", column_name="k"),
            ColumnMapping(file_name="b.csv", column_name="k"),
        ])

        result = JoinExecutor().run([a, b], candidate, JoinType.INNER)
        report = self.checker.verify([a, b], candidate, result)

        assert len(result.records) == 9
        assert report["checks"]["expansion"]["status"] == "warning"
