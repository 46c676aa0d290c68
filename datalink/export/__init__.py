"""
Output: CSV/XLSX files for join results and JSON workspace files.
"""

from .writer import create_joined_dataset, export_records, output_name, write_csv, write_xlsx
from .workspace import default_workspace_name, export_workspace, import_workspace

__all__ = [
    'create_joined_dataset',
    'export_records',
    'output_name',
    'write_csv',
    'write_xlsx',
    'default_workspace_name',
    'export_workspace',
    'import_workspace',
]
