"""
Utility modules for datalink.
Provides common functionality for logging and file I/O.
"""

from .logging_utils import setup_logger, get_logger, set_level, log_banner
from .file_utils import load_config, load_json, save_json, read_table, get_file_list

__all__ = [
    'setup_logger',
    'get_logger',
    'set_level',
    'log_banner',
    'load_config',
    'load_json',
    'save_json',
    'read_table',
    'get_file_list',
]
