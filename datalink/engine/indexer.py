"""
Key indexer.

Groups each dataset's rows by the normalized value of its mapped key column.
Keys are compared as trimmed strings; None, NaN and blank values normalize
to the empty string and never join.
"""

import math
from typing import Any, Dict, Iterable, List, Optional

from datalink.engine.sanitizer import to_text
from datalink.models import Dataset, JoinCandidate
from datalink.utils.logging_utils import get_logger

logger = get_logger(__name__)

UNJOINABLE = ""

KeyGroups = Dict[str, List[Dict[str, Any]]]


def normalize_key(value: Any) -> str:
    """
    Canonical string form of a key cell.

    Example:
        >>> normalize_key("  101 ")
        '101'
        >>> normalize_key(101.0)
        '101'
        >>> normalize_key(None)
        ''
    """
    if value is None:
        return UNJOINABLE
    if isinstance(value, float) and math.isnan(value):
        return UNJOINABLE
    return to_text(value).strip()


def ordered_keys(per_dataset: Iterable[Dict[str, Any]]) -> List[str]:
    """Union of keys in first-encountered order, scanning datasets in order."""
    seen: Dict[str, None] = {}
    for mapping in per_dataset:
        for key in mapping:
            seen.setdefault(key, None)
    return list(seen)


class KeyIndexer:
    """
    Builds key groups and key counts for one join candidate.

    A dataset without a column in the candidate's mapping gets an empty
    index: it is treated as missing for every key.

    Example:
        >>> indexer = KeyIndexer(candidate)
        >>> groups = indexer.index(customers)
        >>> groups["101"][0]["Name"]
        'Alice'
    """

    def __init__(self, candidate: JoinCandidate):
        self.candidate = candidate

    def key_column(self, dataset: Dataset) -> Optional[str]:
        return self.candidate.column_for(dataset.name)

    def index(self, dataset: Dataset) -> KeyGroups:
        """Map normalized key -> rows sharing it, in dataset row order."""
        key_col = self.key_column(dataset)
        groups: KeyGroups = {}
        if key_col is None:
            logger.debug(f"No key column mapped for '{dataset.name}' - dataset is missing for every key")
            return groups

        for row in dataset.rows:
            key = normalize_key(row.get(key_col))
            if key == UNJOINABLE:
                continue
            groups.setdefault(key, []).append(row)

        logger.debug(f"Indexed '{dataset.name}' on '{key_col}': {len(groups)} distinct keys")
        return groups

    def count(self, dataset: Dataset) -> Dict[str, int]:
        """Map normalized key -> number of rows sharing it."""
        key_col = self.key_column(dataset)
        counts: Dict[str, int] = {}
        if key_col is None:
            return counts

        for row in dataset.rows:
            key = normalize_key(row.get(key_col))
            if key != UNJOINABLE:
                counts[key] = counts.get(key, 0) + 1
        return counts

    def index_all(self, datasets: List[Dataset]) -> List[KeyGroups]:
        return [self.index(ds) for ds in datasets]

    def count_all(self, datasets: List[Dataset]) -> List[Dict[str, int]]:
        return [self.count(ds) for ds in datasets]
