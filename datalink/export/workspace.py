"""Workspace export/import: the full list of datasets as one JSON array."""

from datetime import date
from pathlib import Path
from typing import List, Optional, Union

from datalink.models import Dataset
from datalink.utils.file_utils import load_json, save_json
from datalink.utils.logging_utils import get_logger

logger = get_logger(__name__)


def default_workspace_name(today: Optional[date] = None) -> str:
    """e.g. 'datalink_workspace_2024-05-01.json'."""
    return f"datalink_workspace_{(today or date.today()).isoformat()}.json"


def export_workspace(datasets: List[Dataset], path: Union[str, Path]) -> Path:
    """Save every dataset, rows and chat history included."""
    path = Path(path)
    save_json([ds.model_dump(mode='json') for ds in datasets], path, indent=None)
    logger.info(f"Exported workspace with {len(datasets)} datasets")
    return path


def import_workspace(path: Union[str, Path]) -> List[Dataset]:
    """
    Load a workspace file.

    Accepts both this package's field names and the camelCase workspace
    format (headers/data/isJoined/aiContext).

    Raises:
        ValueError: If the file is not a JSON array of dataset objects
    """
    payload = load_json(path)
    if not isinstance(payload, list):
        raise ValueError("Invalid JSON format")

    datasets = [Dataset.model_validate(item) for item in payload]
    logger.info(f"Imported workspace with {len(datasets)} datasets")
    return datasets
