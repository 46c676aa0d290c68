"""
Ingestion: uploaded spreadsheets into Datasets.

Cells are reduced to plain scalars at this boundary so the join engine
only ever sees str, int, float, bool or None.
"""

from .loader import DatasetLoader, dataframe_to_dataset, summarize_dataset, to_cell

__all__ = ['DatasetLoader', 'dataframe_to_dataset', 'summarize_dataset', 'to_cell']
