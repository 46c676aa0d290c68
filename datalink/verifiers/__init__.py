"""
Verification checks for joins.

JoinCheck: estimate agreement, expansion, key coverage, truncation.
"""

from .join_check import JoinChecker

__all__ = ['JoinChecker']
