"""
Join key discovery.

The rule-based KeySuggester works offline; the reasoning service
(datalink.llm) proposes candidates with an LLM.
"""

from .key_suggester import KeySuggester, normalize_column_name

__all__ = ['KeySuggester', 'normalize_column_name']
