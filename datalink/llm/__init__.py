"""
Reasoning service: LLM-backed key discovery, merge planning,
semantic merge and dataset chat.
"""

from .configs import LLMSettings
from .service import (
    CandidateDiscoveryError,
    ReasoningService,
    ReasoningServiceError,
    SemanticMergeError,
)

__all__ = [
    'LLMSettings',
    'ReasoningService',
    'ReasoningServiceError',
    'CandidateDiscoveryError',
    'SemanticMergeError',
]
