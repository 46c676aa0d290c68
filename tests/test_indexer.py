"""
Unit tests for key normalization and indexing
"""

import math

from datalink.engine.indexer import UNJOINABLE, KeyIndexer, normalize_key, ordered_keys
from datalink.models import ColumnMapping, Dataset, JoinCandidate


def test_normalize_key():
    assert normalize_key("  101 ") == "101"
    assert normalize_key(101) == "101"
    assert normalize_key(101.0) == "101"
    assert normalize_key(True) == "true"
    assert normalize_key(None) == UNJOINABLE
    assert normalize_key(math.nan) == UNJOINABLE
    assert normalize_key("   ") == UNJOINABLE


def test_ordered_keys_first_encountered():
    assert ordered_keys([{"b": 1, "a": 1}, {"c": 1, "a": 2}]) == ["b", "a", "c"]


class TestKeyIndexer:
    """Test cases for KeyIndexer"""

    def test_index_groups_rows_in_order(self, orders, candidate):
        groups = KeyIndexer(candidate).index(orders)

        assert list(groups) == ["101", "102", "103", "999"]
        assert [r["OrderID"] for r in groups["101"]] == ["O1", "O2"]

    def test_count(self, orders, candidate):
        counts = KeyIndexer(candidate).count(orders)
        assert counts == {"101": 2, "102": 1, "103": 2, "999": 1}

    def test_unjoinable_rows_excluded(self, candidate):
        ds = Dataset(
            name="customers.xlsx",
            columns=["CustomerID", "Name"],
            rows=[
                {"CustomerID": None, "Name": "a"},
                {"CustomerID": "", "Name": "b"},
                {"CustomerID": "  ", "Name": "c"},
                {"Name": "d"},
                {"CustomerID": 7, "Name": "e"},
            ],
        )
        indexer = KeyIndexer(candidate)

        assert list(indexer.index(ds)) == ["7"]
        assert indexer.count(ds) == {"7": 1}

    def test_unmapped_dataset_is_empty(self, candidate):
        ds = Dataset(name="returns.csv", columns=["CustomerID"], rows=[{"CustomerID": 101}])
        indexer = KeyIndexer(candidate)

        assert indexer.key_column(ds) is None
        assert indexer.index(ds) == {}
        assert indexer.count(ds) == {}

    def test_first_mapping_wins(self, customers):
        candidate = JoinCandidate(
            key_name="id",
            column_mappings=[
                ColumnMapping(file_name="customers.xlsx", column_name="CustomerID"),
                ColumnMapping(file_name="customers.xlsx", column_name="Name"),
            ],
        )
        assert KeyIndexer(candidate).key_column(customers) == "CustomerID"
