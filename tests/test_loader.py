"""
Unit tests for dataset ingestion
"""

import numpy as np
import pandas as pd
import pytest

from datalink.ingest.loader import DatasetLoader, dataframe_to_dataset, summarize_dataset, to_cell


class TestToCell:
    """Test cases for the cell adapter"""

    def test_numpy_scalars(self):
        assert to_cell(np.int64(7)) == 7
        assert type(to_cell(np.int64(7))) is int
        assert to_cell(np.bool_(True)) is True
        assert to_cell(np.float64(1.5)) == 1.5

    def test_missing_values(self):
        assert to_cell(float("nan")) is None
        assert to_cell(np.nan) is None
        assert to_cell(pd.NaT) is None
        assert to_cell(None) is None

    def test_timestamps(self):
        assert to_cell(pd.Timestamp("2024-01-31")) == "2024-01-31T00:00:00"

    def test_strings_unchanged(self):
        assert to_cell("Alice") == "Alice"


def test_dataframe_to_dataset_omits_empty_cells():
    df = pd.DataFrame({"id": [1, 2], "name": ["Alice", None], "Unnamed: 2": [None, None]})

    ds = dataframe_to_dataset(df, name="people.csv")

    assert ds.columns == ["id", "name"]
    assert ds.rows == [{"id": 1, "name": "Alice"}, {"id": 2}]


class TestDatasetLoader:
    """Test cases for DatasetLoader"""

    def setup_method(self):
        self.loader = DatasetLoader()

    def test_load_csv(self, tmp_path):
        path = tmp_path / "customers.csv"
        path.write_text("CustomerID,Name\n101,Alice\n102,\n", encoding="utf-8")

        ds = self.loader.load_file(path)

        assert ds.name == "customers.csv"
        assert ds.columns == ["CustomerID", "Name"]
        assert ds.rows == [{"CustomerID": 101, "Name": "Alice"}, {"CustomerID": 102}]
        assert ds.size == path.stat().st_size

    def test_load_bytes(self):
        ds = self.loader.load_file(b"a,b\n1,x\n", file_name="upload.csv")

        assert ds.name == "upload.csv"
        assert ds.rows == [{"a": 1, "b": "x"}]
        assert ds.size == 8

    def test_load_xlsx_first_sheet(self, tmp_path):
        path = tmp_path / "orders.xlsx"
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame({"OrderID": ["O1"], "Amount": [50]}).to_excel(writer, sheet_name="First", index=False)
            pd.DataFrame({"Other": [1]}).to_excel(writer, sheet_name="Second", index=False)

        ds = self.loader.load_file(path)

        assert ds.columns == ["OrderID", "Amount"]
        assert ds.rows == [{"OrderID": "O1", "Amount": 50}]

    def test_int_column_with_blank_cell(self, tmp_path):
        path = tmp_path / "orders.csv"
        path.write_text("id,Amount\n1,50\n2,\n", encoding="utf-8")

        ds = self.loader.load_file(path)

        assert ds.rows == [{"id": 1, "Amount": 50}, {"id": 2}]
        assert type(ds.rows[0]["Amount"]) is int

    def test_blank_header_columns_dropped(self, tmp_path):
        path = tmp_path / "t.csv"
        path.write_text("A,,B\n1,2,3\n", encoding="utf-8")

        ds = self.loader.load_file(path)

        assert ds.columns == ["A", "B"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ValueError, match="File empty.csv is empty"):
            self.loader.load_file(path)

    def test_unsupported_type(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello", encoding="utf-8")

        with pytest.raises(ValueError):
            self.loader.load_file(path)

    def test_load_all_skips_failures_and_duplicates(self, tmp_path):
        good = tmp_path / "a.csv"
        good.write_text("x\n1\n", encoding="utf-8")
        empty = tmp_path / "b.csv"
        empty.write_text("", encoding="utf-8")
        other_dir = tmp_path / "copy"
        other_dir.mkdir()
        duplicate = other_dir / "a.csv"
        duplicate.write_text("x\n2\n", encoding="utf-8")

        datasets = self.loader.load_all([good, empty, tmp_path / "missing.csv", duplicate])

        assert [ds.name for ds in datasets] == ["a.csv"]
        assert datasets[0].rows == [{"x": 1}]

    def test_load_directory(self, tmp_path):
        (tmp_path / "b.csv").write_text("x\n1\n", encoding="utf-8")
        (tmp_path / "a.csv").write_text("y\n2\n", encoding="utf-8")
        (tmp_path / "readme.md").write_text("skip", encoding="utf-8")

        datasets = self.loader.load_directory(tmp_path)

        assert [ds.name for ds in datasets] == ["a.csv", "b.csv"]


def test_summarize_dataset(customers):
    summary = summarize_dataset(customers, sample_rows=2)

    assert summary["fileName"] == "customers.xlsx"
    assert summary["headers"] == ["CustomerID", "Name", "City"]
    assert summary["sampleData"] == [
        {"CustomerID": 101, "Name": "Alice", "City": "Oslo"},
        {"CustomerID": 102, "Name": "Bob", "City": "Lima"},
    ]
