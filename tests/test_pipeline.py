"""
Integration tests for the pipeline orchestrator
"""

import json

import pandas as pd
import pytest
import yaml
from langchain_core.language_models import FakeListChatModel

from datalink.llm import ReasoningService
from datalink.main import Pipeline
from datalink.models import JoinType


@pytest.fixture
def pipeline(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DATALINK_MAX_COMBINATIONS", raising=False)

    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump({
        "data": {"raw_dir": str(tmp_path / "raw"), "outputs_dir": str(tmp_path / "out")},
        "discovery": {"use_llm": True},
    }), encoding="utf-8")

    service = ReasoningService(model=FakeListChatModel(responses=["not json"]))
    return Pipeline(config_file=str(config_path), service=service)


@pytest.fixture
def raw_files(tmp_path):
    raw = tmp_path / "raw"
    raw.mkdir()
    pd.DataFrame({
        "CustomerID": [101, 102, 103, 104, 105],
        "Name": ["Alice", "Bob", "Chen", "Dara", "Eve"],
    }).to_excel(raw / "customers.xlsx", index=False)
    (raw / "orders.csv").write_text(
        "OrderID,Cust_Ref_ID,Amount\nO1,101,50\nO2,101,20\nO3,102,15\nO4,103,30\nO5,103,12\nO6,999,7\n",
        encoding="utf-8",
    )
    return raw


def test_end_to_end_join(pipeline, raw_files, tmp_path):
    datasets = pipeline.load()
    assert [ds.name for ds in datasets] == ["customers.xlsx", "orders.csv"]

    # The fake model returns garbage, so discovery falls back to the rule-based suggester
    candidates = pipeline.discover(datasets)
    candidate = candidates[0]
    assert candidate.column_for("orders.csv") == "Cust_Ref_ID"

    stats = pipeline.stats(datasets, candidate)
    assert stats.as_dict() == {"INNER": 5, "OUTER": 8, "LEFT": 7, "ADDITIVE": 8}

    result, report = pipeline.join(datasets, candidate, JoinType.ADDITIVE)
    assert len(result.records) == 8
    assert report["checks"]["estimate"]["status"] == "pass"

    path, joined = pipeline.save(result.records, JoinType.ADDITIVE, candidate)
    assert path == tmp_path / "out" / "merged_additive_CustomerID.csv"
    assert len(pd.read_csv(path)) == 8
    assert joined.name == "merged_additive_CustomerID (Joined)"
    assert joined.is_joined


def test_semantic_merge_saved(tmp_path, monkeypatch, datasets, candidate):
    monkeypatch.chdir(tmp_path)
    rows = [{"Customer ID": 101, "Name": "Alice", "Orders": ["O1", "O2"]}]
    service = ReasoningService(model=FakeListChatModel(responses=[json.dumps(rows)]))
    pipeline = Pipeline(service=service)

    records = pipeline.semantic(datasets, candidate, "Match on id")
    path, joined = pipeline.save(records, JoinType.AI_SEMANTIC, candidate, str(tmp_path / "ai.xlsx"))

    assert records == [{"Customer ID": 101, "Name": "Alice", "Orders": "O1 | O2"}]
    assert path.exists()
    assert joined.name == "ai_semantic_merge_Customer_ID (Joined)"


def test_chat_records_history(tmp_path, monkeypatch, customers):
    monkeypatch.chdir(tmp_path)
    pipeline = Pipeline(service=ReasoningService(model=FakeListChatModel(responses=["Five rows."])))

    updated = pipeline.chat(customers, "How many rows?")

    assert updated.ai_context.chat_history[-1].text == "Five rows."
