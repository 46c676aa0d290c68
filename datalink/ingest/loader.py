"""
Dataset Loader

Reads uploaded spreadsheets (CSV, XLS/XLSX, JSON) into Dataset records:
- First sheet, first row as header
- Cells converted to plain Python scalars (numpy/pandas types, NaN, dates)
- Empty cells omitted from the row record
- Compact per-file summaries for prompts
"""

import datetime
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd
from tqdm import tqdm

from datalink.engine.sanitizer import sanitize
from datalink.models import Dataset
from datalink.utils.file_utils import get_file_list, read_table
from datalink.utils.logging_utils import get_logger

logger = get_logger(__name__)


def to_cell(value: Any) -> Any:
    """
    Convert a raw cell into str, int, float, bool or None.

    Example:
        >>> to_cell(np.int64(7))
        7
        >>> to_cell(float("nan")) is None
        True
        >>> to_cell(pd.Timestamp("2024-01-31"))
        '2024-01-31T00:00:00'
    """
    if value is None or value is pd.NaT or value is pd.NA:
        return None
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, (float, np.floating)):
        value = float(value)
        return None if math.isnan(value) else value
    if isinstance(value, (pd.Timestamp, datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, np.ndarray):
        value = value.tolist()
    return sanitize(value)


def _is_blank_header(name: Any) -> bool:
    text = str(name).strip()
    return not text or text.startswith('Unnamed:')


def dataframe_to_dataset(df: pd.DataFrame, name: str, size: int = 0) -> Dataset:
    """
    Build a Dataset from a DataFrame.

    Columns with blank headers are dropped; None cells are left out of
    each row record. Columns are converted to nullable dtypes first, so an
    integer column with blank cells keeps integer values.
    """
    keep = [c for c in df.columns if not _is_blank_header(c)]
    columns = [str(c) for c in keep]

    rows: List[Dict[str, Any]] = []
    for record in df[keep].convert_dtypes().itertuples(index=False, name=None):
        row = {}
        for col, raw in zip(columns, record):
            cell = to_cell(raw)
            if cell is not None:
                row[col] = cell
        rows.append(row)

    return Dataset(name=name, columns=columns, rows=rows, size=size)


class DatasetLoader:
    """
    Loads tabular files into Datasets.

    Example:
        >>> loader = DatasetLoader()
        >>> datasets = loader.load_all(["customers.xlsx", "orders.csv"])
        >>> [d.row_count for d in datasets]
        [5, 6]
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the loader.

        Args:
            config: Optional settings ('sample_size': rows to read, None = all)
        """
        self.config = {
            'sample_size': None,
        }

        if config:
            self.config.update(config)

    def load_file(
        self,
        source: Union[str, Path, bytes],
        file_name: Optional[str] = None
    ) -> Dataset:
        """
        Load one file (path or uploaded bytes) into a Dataset.

        Args:
            source: Path to the file, or its bytes
            file_name: Dataset name; required for bytes, defaults to the file name

        Returns:
            Dataset named after the file

        Raises:
            ValueError: If the file is empty or of an unsupported type
        """
        if isinstance(source, (bytes, bytearray)):
            name = file_name
            size = len(source)
        else:
            path = Path(source)
            name = file_name or path.name
            size = path.stat().st_size if path.exists() else 0

        try:
            df = read_table(source, file_name=name, sample_size=self.config['sample_size'])
        except pd.errors.EmptyDataError:
            raise ValueError(f"File {name} is empty")

        if len(df.columns) == 0:
            raise ValueError(f"File {name} is empty")

        dataset = dataframe_to_dataset(df, name=name, size=size)
        logger.info(f"  {name}: {dataset.row_count} rows, {len(dataset.columns)} columns")

        return dataset

    def load_all(self, sources: List[Union[str, Path]]) -> List[Dataset]:
        """
        Load several files, skipping failures and duplicate names.

        Args:
            sources: File paths, in the order they should be joined

        Returns:
            Datasets that loaded successfully
        """
        datasets: List[Dataset] = []
        seen = set()

        for source in tqdm(sources, desc="Loading files"):
            name = Path(source).name
            if name in seen:
                logger.warning(f"Skipping duplicate file name: {name}")
                continue
            try:
                datasets.append(self.load_file(source))
                seen.add(name)
            except (ValueError, FileNotFoundError) as e:
                logger.error(f"Failed to load {name}: {e}")

        logger.info(f"Loaded {len(datasets)} of {len(sources)} files")
        return datasets

    def load_directory(self, directory: Union[str, Path]) -> List[Dataset]:
        """Load every CSV, Excel and JSON file in a directory."""
        return self.load_all(get_file_list(directory))


def summarize_dataset(dataset: Dataset, sample_rows: int = 3) -> Dict[str, Any]:
    """
    Prompt-sized summary of a dataset: name, headers and a few sample rows.

    Sample rows are projected onto the headers so every sample carries
    the same keys (missing cells become None).
    """
    return {
        'fileName': dataset.name,
        'headers': dataset.columns,
        'sampleData': [
            {h: row.get(h) for h in dataset.columns}
            for row in dataset.preview_rows[:sample_rows]
        ],
    }
