"""Conversation models and schemas."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.clock import ensure_utc


ConversationType = Literal["direct", "job_related"]
ConversationFlag = Literal["is_pinned", "is_archived", "is_muted"]


class ConversationMetadata(BaseModel):
    """Job snapshot taken when the conversation was created; never refreshed."""
    job_title: str = ""
    vehicle_description: str = ""
    priority: str = "medium"


class Conversation(BaseModel):
    """One-to-one thread between two participants about one job."""
    model_config = ConfigDict(extra="ignore")

    id: str
    key: str
    participants: List[str]
    participant_names: Dict[str, str] = Field(default_factory=dict)
    job_id: Optional[str] = None
    type: ConversationType = "job_related"
    title: str = ""
    last_message: Optional[str] = None
    last_message_time: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    is_pinned: bool = False
    is_archived: bool = False
    is_muted: bool = False
    # Zero per participant on creation; the message writer that appends to the
    # thread increments and resets these. Read-only here.
    unread_counts: Dict[str, int] = Field(default_factory=dict)
    metadata: ConversationMetadata = Field(default_factory=ConversationMetadata)

    # False for ephemeral conversations built when the store is unreachable.
    persisted: bool = True

    @field_validator("created_at", "updated_at", "last_message_time", mode="after")
    @classmethod
    def _utc(cls, v):
        return ensure_utc(v)

    def title_for(self, viewer_id: Optional[str]) -> str:
        """Counterpart's display name as seen by `viewer_id`."""
        if viewer_id in self.participants:
            others = [p for p in self.participants if p != viewer_id]
            if others and self.participant_names.get(others[0]):
                return self.participant_names[others[0]]
        return self.title

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Conversation":
        doc = dict(doc)
        doc.pop("_id", None)
        doc["id"] = doc.pop("conversation_id", doc.get("id"))
        return cls.model_validate(doc)

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(exclude={"id", "persisted"})
        doc["conversation_id"] = self.id
        return doc


@dataclass(frozen=True)
class ConversationResult:
    """Outcome of find-or-create.

    `degraded` marks an ephemeral conversation that was never stored and that
    other callers cannot discover.
    """
    conversation: Conversation
    is_new: bool
    degraded: bool = False


# ============================================================================
# Request Schemas
# ============================================================================

class OpenConversationRequest(BaseModel):
    """Open (or reuse) the thread between two participants of a job."""
    participant_ids: List[str] = Field(..., min_length=2, max_length=2)
    participant_names: List[str] = Field(..., min_length=2, max_length=2)


class ConversationFlagRequest(BaseModel):
    """Set a flag; omit `value` to toggle it."""
    value: Optional[bool] = None


# ============================================================================
# Response Schemas
# ============================================================================

class ConversationResponse(BaseModel):
    id: str
    job_id: Optional[str] = None
    type: str
    title: str
    participants: List[str]
    participant_names: Dict[str, str] = {}
    last_message: Optional[str] = None
    last_message_time: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    is_pinned: bool = False
    is_archived: bool = False
    is_muted: bool = False
    unread_count: int = 0
    metadata: ConversationMetadata


class OpenConversationResponse(BaseModel):
    conversation: ConversationResponse
    is_new: bool
    degraded: bool = False


class ConversationsListResponse(BaseModel):
    conversations: List[ConversationResponse]
    total: int
