"""
datalink: join key discovery and multi-file joins for tabular data.
"""

__version__ = "0.1.0"
