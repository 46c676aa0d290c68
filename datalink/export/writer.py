"""
Joined output writers.

The sheet header is taken from the FIRST record's keys. Values under keys
that only appear in later records are not written; a warning names the
dropped columns.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from datalink.engine.sanitizer import sanitize_record
from datalink.models import Dataset, JoinType
from datalink.utils.logging_utils import get_logger

logger = get_logger(__name__)

SHEET_NAME = "Joined Data"
JOINED_SUFFIX = " (Joined)"

_JOIN_TYPE_LABELS = {
    JoinType.INNER: 'inner',
    JoinType.LEFT: 'left',
    JoinType.OUTER: 'full',
    JoinType.ADDITIVE: 'additive',
}


def output_name(join_type: JoinType, key_name: str) -> str:
    """
    Base file name for a join result.

    Example:
        >>> output_name(JoinType.OUTER, "Customer ID")
        'merged_full_Customer_ID'
    """
    join_type = JoinType(join_type)
    if join_type == JoinType.AI_SEMANTIC:
        prefix = 'ai_semantic_merge'
    else:
        prefix = f"merged_{_JOIN_TYPE_LABELS[join_type]}"
    key_part = re.sub(r"\s+", "_", key_name)
    return f"{prefix}_{key_part}"


def create_joined_dataset(records: List[Dict[str, Any]], name: str) -> Dataset:
    """
    Wrap join output as a workspace Dataset so it can be joined or chatted with.

    Records are sanitized again, since semantic merge output may hold
    nested values. Columns come from the first record.
    """
    rows = [sanitize_record(r) for r in records]
    columns = list(rows[0].keys()) if rows else []
    size = len(json.dumps(rows, separators=(",", ":"), ensure_ascii=False).encode('utf-8'))

    return Dataset(name=name, columns=columns, rows=rows, size=size, is_joined=True)


def _flatten(records: List[Dict[str, Any]]) -> pd.DataFrame:
    flat = [sanitize_record(r, for_text=True) for r in records]
    header = list(flat[0].keys())

    extra = []
    for row in flat[1:]:
        for col in row:
            if col not in header and col not in extra:
                extra.append(col)
    if extra:
        logger.warning(f"Header comes from the first record; {len(extra)} later columns not written: {extra}")

    return pd.DataFrame(flat, columns=header, dtype=object)


def write_csv(records: List[Dict[str, Any]], path: Union[str, Path]) -> Path:
    """Write records as CSV. None values become empty cells."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if not records:
        path.write_text("", encoding='utf-8')
    else:
        _flatten(records).to_csv(path, index=False)

    logger.info(f"Saved {len(records)} rows to: {path}")
    return path


def write_xlsx(records: List[Dict[str, Any]], path: Union[str, Path]) -> Path:
    """Write records to a single-sheet workbook."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    df = _flatten(records) if records else pd.DataFrame()
    df.to_excel(path, sheet_name=SHEET_NAME, index=False, engine='openpyxl')

    logger.info(f"Saved {len(records)} rows to: {path}")
    return path


def export_records(records: List[Dict[str, Any]], path: Union[str, Path]) -> Path:
    """Write records as CSV or XLSX depending on the file suffix."""
    suffix = Path(path).suffix.lower()
    if suffix == '.csv':
        return write_csv(records, path)
    if suffix == '.xlsx':
        return write_xlsx(records, path)
    raise ValueError(f"Unsupported export format: {suffix}")
