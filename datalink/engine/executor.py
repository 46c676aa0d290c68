"""
Join executor.

Materializes a multi-way key join. For every key (first-encountered order
across datasets) the rows sharing it in each dataset are combined as a
cartesian product, with a single ``None`` placeholder standing in for a
dataset that lacks the key. Dataset 0 varies slowest.

Output column names are ``"<file name without extension> - <column>"`` with
non-alphanumerics replaced by ``_``; the key itself appears once under the
candidate's key name.
"""

import re
from itertools import islice, product
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from datalink.engine.indexer import KeyIndexer, ordered_keys
from datalink.engine.sanitizer import sanitize
from datalink.models import Dataset, JoinCandidate, JoinType
from datalink.utils.logging_utils import get_logger

logger = get_logger(__name__)

STATUS_COLUMN = "_Join_Status"
FOUND_IN_PREFIX = "_Found_In_"
STATUS_MATCHED = "Matched (All Files)"
STATUS_TRUNCATED = "Truncated"

_EXTENSION = re.compile(r"\.[^/.]+$")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def clean_file_name(name: str) -> str:
    """
    Strip the extension and replace non-alphanumerics with ``_``.

    Example:
        >>> clean_file_name("Q3 sales-2024.xlsx")
        'Q3_sales_2024'
    """
    return _NON_ALNUM.sub("_", _EXTENSION.sub("", name))


def join_status(found: List[str], missing: List[str], total: int) -> str:
    """Match-provenance label used by the additive join."""
    if not missing:
        return STATUS_MATCHED
    if len(found) == 1:
        return f"Unique to {found[0]}"
    return f"Partial Match (Found in {len(found)}/{total})"


class JoinResult(BaseModel):
    """Records produced by one join plus truncation bookkeeping."""
    join_type: JoinType
    records: List[Dict[str, Any]] = Field(default_factory=list)
    truncated_keys: Dict[str, int] = Field(
        default_factory=dict,
        description="key -> number of combinations dropped by the per-key cap"
    )

    @property
    def dropped_rows(self) -> int:
        return sum(self.truncated_keys.values())


class JoinExecutor:
    """
    Executes INNER, OUTER, LEFT and ADDITIVE joins.

    Duplicate keys are expanded faithfully, so a key present k times in one
    dataset and m times in another yields k * m rows. Pass
    ``max_combinations_per_key`` to cap that expansion; capped keys keep
    their first N combinations and are flagged with
    ``_Join_Status = "Truncated"``.

    Example:
        >>> executor = JoinExecutor()
        >>> rows = executor.execute([customers, orders], candidate, JoinType.ADDITIVE)
        >>> rows[0]["_Join_Status"]
        'Matched (All Files)'
    """

    def __init__(self, max_combinations_per_key: Optional[int] = None):
        if max_combinations_per_key is not None and max_combinations_per_key < 1:
            raise ValueError("max_combinations_per_key must be a positive integer")
        self.max_combinations_per_key = max_combinations_per_key

    def execute(
        self,
        datasets: List[Dataset],
        candidate: JoinCandidate,
        join_type: JoinType = JoinType.OUTER
    ) -> List[Dict[str, Any]]:
        """Run the join and return only the records."""
        return self.run(datasets, candidate, join_type).records

    def run(
        self,
        datasets: List[Dataset],
        candidate: JoinCandidate,
        join_type: JoinType = JoinType.OUTER
    ) -> JoinResult:
        """
        Run the join.

        Args:
            datasets: Datasets in join order; dataset 0 is the LEFT side
            candidate: Key name and per-dataset key columns
            join_type: Any join type except AI_SEMANTIC

        Returns:
            JoinResult with records in deterministic order
        """
        join_type = JoinType(join_type)
        if join_type == JoinType.AI_SEMANTIC:
            raise ValueError("AI_SEMANTIC joins are executed by the reasoning service")

        indexer = KeyIndexer(candidate)
        groups_per_dataset = indexer.index_all(datasets)
        key_columns = [indexer.key_column(ds) for ds in datasets]
        prefixes = [clean_file_name(ds.name) for ds in datasets]
        names = [ds.name for ds in datasets]

        result = JoinResult(join_type=join_type)

        for key in ordered_keys(groups_per_dataset):
            slots = [groups.get(key) or [None] for groups in groups_per_dataset]
            present = [slot[0] is not None for slot in slots]

            if join_type == JoinType.INNER and not all(present):
                continue
            if join_type == JoinType.LEFT and not present[0]:
                continue

            total = 1
            for slot in slots:
                total *= len(slot)

            combinations = product(*slots)
            truncated = False
            cap = self.max_combinations_per_key
            if cap is not None and total > cap:
                combinations = islice(combinations, cap)
                result.truncated_keys[key] = total - cap
                truncated = True

            for combo in combinations:
                record = self._build_record(
                    key, combo, candidate.key_name, key_columns, prefixes, names, join_type
                )
                if truncated:
                    record[STATUS_COLUMN] = STATUS_TRUNCATED
                result.records.append(record)

        if result.truncated_keys:
            logger.warning(
                f"Truncated {len(result.truncated_keys)} keys at "
                f"{self.max_combinations_per_key} combinations each; "
                f"{result.dropped_rows} rows dropped"
            )

        logger.info(f"{join_type.value} join on '{candidate.key_name}': {len(result.records)} rows")
        return result

    @staticmethod
    def _build_record(
        key: str,
        combo: tuple,
        key_name: str,
        key_columns: List[Optional[str]],
        prefixes: List[str],
        names: List[str],
        join_type: JoinType
    ) -> Dict[str, Any]:
        record: Dict[str, Any] = {key_name: key}
        found: List[str] = []
        missing: List[str] = []

        for pos, row in enumerate(combo):
            if row is None:
                missing.append(names[pos])
                continue
            found.append(names[pos])
            for col, value in row.items():
                if col == key_columns[pos]:
                    continue
                record[f"{prefixes[pos]} - {col}"] = sanitize(value)

        if join_type == JoinType.ADDITIVE:
            record[STATUS_COLUMN] = join_status(found, missing, len(names))
            for name, prefix in zip(names, prefixes):
                record[f"{FOUND_IN_PREFIX}{prefix}"] = "TRUE" if name in found else "FALSE"

        return record


def join_datasets(
    datasets: List[Dataset],
    candidate: JoinCandidate,
    join_type: JoinType = JoinType.OUTER,
    max_combinations_per_key: Optional[int] = None
) -> List[Dict[str, Any]]:
    """Convenience wrapper around JoinExecutor.execute."""
    return JoinExecutor(max_combinations_per_key).execute(datasets, candidate, join_type)
