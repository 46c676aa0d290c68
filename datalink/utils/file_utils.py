"""
File I/O utilities for datalink.
Handles YAML config, JSON documents and reading tabular files into pandas.
"""

import io
import json
import yaml
import pandas as pd
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from .logging_utils import get_logger

logger = get_logger(__name__)

SPREADSHEET_SUFFIXES = ('.xlsx', '.xls')
TABLE_SUFFIXES = ('.csv',) + SPREADSHEET_SUFFIXES + ('.json',)


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Configuration dictionary (empty if the file holds no mapping)

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is malformed
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.info(f"Loading config from: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    return config or {}


def load_json(file_path: Union[str, Path]) -> Union[Dict, List]:
    """
    Load a JSON file.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed JSON data (dict or list)
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"JSON file not found: {file_path}")

    logger.debug(f"Loading JSON: {file_path}")

    with open(file_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    return data


def save_json(
    data: Union[Dict, List],
    file_path: Union[str, Path],
    indent: Optional[int] = 2
) -> None:
    """
    Save data to a JSON file, creating parent directories.

    Args:
        data: Data to save (dict or list)
        file_path: Output file path
        indent: JSON indentation (None for compact output)
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    logger.debug(f"Saving JSON: {file_path}")

    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, default=str, ensure_ascii=False)

    logger.info(f"Saved JSON to: {file_path}")


def read_table(
    source: Union[str, Path, bytes],
    file_name: Optional[str] = None,
    sample_size: Optional[int] = None
) -> pd.DataFrame:
    """
    Read a CSV, Excel or JSON table into a DataFrame.

    Spreadsheets are read from their first sheet with the first row as
    header. ``source`` may be raw bytes (an upload), in which case
    ``file_name`` decides the format.

    Args:
        source: Path to the file, or the file's bytes
        file_name: Name used to pick the format when ``source`` is bytes
        sample_size: Number of rows to read (None = all rows)

    Returns:
        DataFrame with the table contents

    Example:
        >>> df = read_table("data/raw/customers.xlsx")
        >>> print(f"Loaded {len(df)} rows")
    """
    if isinstance(source, (bytes, bytearray)):
        if not file_name:
            raise ValueError("file_name is required when reading from bytes")
        suffix = Path(file_name).suffix.lower()
        handle = io.BytesIO(source)
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Data file not found: {path}")
        file_name = file_name or path.name
        suffix = path.suffix.lower()
        handle = path

    if suffix not in TABLE_SUFFIXES:
        raise ValueError(f"Unsupported file type: {suffix or file_name}")

    logger.info(f"Reading table: {file_name}")

    if suffix == '.csv':
        df = pd.read_csv(handle, nrows=sample_size)
    elif suffix in SPREADSHEET_SUFFIXES:
        df = pd.read_excel(handle, sheet_name=0, nrows=sample_size)
    else:
        df = pd.read_json(handle, orient='records')
        if sample_size:
            df = df.head(sample_size)

    logger.info(f"Loaded {len(df)} rows from {file_name}")

    return df


def get_file_list(
    directory: Union[str, Path],
    suffixes: tuple = TABLE_SUFFIXES
) -> List[Path]:
    """
    List files in a directory whose suffix is one of ``suffixes``.

    Args:
        directory: Directory to search
        suffixes: Accepted lowercase suffixes

    Returns:
        Sorted list of matching file paths
    """
    directory = Path(directory)

    if not directory.exists():
        raise FileNotFoundError(f"Directory not found: {directory}")

    files = sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in suffixes)
    logger.info(f"Found {len(files)} data files in {directory}")

    return files
