"""Shared pytest fixtures for all tests."""

import pytest

from datalink.config import reset_config
from datalink.models import ColumnMapping, Dataset, JoinCandidate


@pytest.fixture
def customers() -> Dataset:
    """Five customers, keys 101-105, each appearing once."""
    return Dataset(
        name="customers.xlsx",
        columns=["CustomerID", "Name", "City"],
        rows=[
            {"CustomerID": 101, "Name": "Alice", "City": "Oslo"},
            {"CustomerID": 102, "Name": "Bob", "City": "Lima"},
            {"CustomerID": 103, "Name": "Chen", "City": "Pune"},
            {"CustomerID": 104, "Name": "Dara", "City": "Kyiv"},
            {"CustomerID": 105, "Name": "Eve", "City": "Rome"},
        ],
    )


@pytest.fixture
def orders() -> Dataset:
    """Orders keyed 101 x2, 102 x1, 103 x2 and an unmatched 999."""
    return Dataset(
        name="orders.csv",
        columns=["OrderID", "Cust_Ref_ID", "Amount"],
        rows=[
            {"OrderID": "O1", "Cust_Ref_ID": 101, "Amount": 50},
            {"OrderID": "O2", "Cust_Ref_ID": 101, "Amount": 20},
            {"OrderID": "O3", "Cust_Ref_ID": 102, "Amount": 15},
            {"OrderID": "O4", "Cust_Ref_ID": 103, "Amount": 30},
            {"OrderID": "O5", "Cust_Ref_ID": 103, "Amount": 12},
            {"OrderID": "O6", "Cust_Ref_ID": 999, "Amount": 7},
        ],
    )


@pytest.fixture
def candidate() -> JoinCandidate:
    return JoinCandidate(
        key_name="Customer ID",
        column_mappings=[
            ColumnMapping(file_name="customers.xlsx", column_name="CustomerID"),
            ColumnMapping(file_name="orders.csv", column_name="Cust_Ref_ID"),
        ],
        confidence=95,
        reasoning="CustomerID and Cust_Ref_ID share integer customer ids",
    )


@pytest.fixture
def datasets(customers, orders):
    return [customers, orders]


@pytest.fixture(autouse=True)
def fresh_config():
    """Each test starts without a cached process-wide config."""
    reset_config()
    yield
    reset_config()
