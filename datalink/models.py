"""Shared data models: datasets, join candidates, join types and stats."""

import time
import uuid
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

PREVIEW_ROWS = 10


def _short_id() -> str:
    return uuid.uuid4().hex[:9]


class JoinType(str, Enum):
    """Join semantics offered to the user."""
    INNER = "INNER"
    OUTER = "OUTER"
    LEFT = "LEFT"
    ADDITIVE = "ADDITIVE"
    AI_SEMANTIC = "AI_SEMANTIC"


ENGINE_JOIN_TYPES = (JoinType.INNER, JoinType.OUTER, JoinType.LEFT, JoinType.ADDITIVE)


class ChatMessage(BaseModel):
    """One turn of a dataset conversation."""
    role: Literal["user", "model"]
    text: str
    timestamp: float = Field(default_factory=time.time)


class AIContext(BaseModel):
    """User-provided context and chat history attached to a dataset."""
    model_config = ConfigDict(populate_by_name=True)

    user_description: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("user_description", "userDescription"),
        description="Free-text description, e.g. 'Q3 sales data'"
    )
    column_meanings: Dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("column_meanings", "columnMeanings"),
    )
    chat_history: List[ChatMessage] = Field(
        default_factory=list,
        validation_alias=AliasChoices("chat_history", "chatHistory"),
    )


class Dataset(BaseModel):
    """
    A named table: ordered columns plus row records (column -> value).

    Field aliases accept the camelCase workspace format (``headers``,
    ``data``, ``isJoined``, ``aiContext``) on import.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_short_id)
    name: str
    columns: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("columns", "headers"),
    )
    rows: List[Dict[str, Any]] = Field(
        default_factory=list,
        validation_alias=AliasChoices("rows", "data"),
    )
    size: int = 0
    is_joined: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_joined", "isJoined"),
    )
    ai_context: AIContext = Field(
        default_factory=AIContext,
        validation_alias=AliasChoices("ai_context", "aiContext"),
    )

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def preview_rows(self) -> List[Dict[str, Any]]:
        return self.rows[:PREVIEW_ROWS]


class ColumnMapping(BaseModel):
    """Which column of which file holds the join key."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file_name: str = Field(validation_alias=AliasChoices("file_name", "fileName"))
    column_name: str = Field(validation_alias=AliasChoices("column_name", "columnName"))


class JoinCandidate(BaseModel):
    """
    A proposed join key: a display name plus one column per dataset.

    Accepts both snake_case and the camelCase shape returned by the
    reasoning service (``keyName``, ``confidenceScore``, ``columnMappings``,
    ``potentialIssues``).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key_name: str = Field(validation_alias=AliasChoices("key_name", "keyName"))
    column_mappings: List[ColumnMapping] = Field(
        default_factory=list,
        validation_alias=AliasChoices("column_mappings", "columnMappings"),
    )
    confidence: float = Field(
        default=0.0,
        validation_alias=AliasChoices("confidence", "confidenceScore"),
        description="0 to 100"
    )
    reasoning: str = ""
    issues: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("issues", "potentialIssues"),
    )

    def column_for(self, file_name: str) -> Optional[str]:
        """Mapped key column for a dataset name; the first mapping wins."""
        for mapping in self.column_mappings:
            if mapping.file_name == file_name:
                return mapping.column_name
        return None


class JoinStats(BaseModel):
    """Estimated row counts per join type. AI_SEMANTIC is unknown until run."""
    inner: int = 0
    outer: int = 0
    left: int = 0
    additive: int = 0

    def get(self, join_type: JoinType) -> Optional[int]:
        if join_type == JoinType.AI_SEMANTIC:
            return None
        return getattr(self, join_type.value.lower())

    def as_dict(self) -> Dict[str, int]:
        return {jt.value: self.get(jt) for jt in ENGINE_JOIN_TYPES}
