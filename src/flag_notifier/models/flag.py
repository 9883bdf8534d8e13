"""Flag domain models.

- FlagRecord: one student flag as served by the flags endpoint
- SnapshotEntry: the subset of a FlagRecord persisted for comparison
- ChangeEvent: a classified difference between two observations
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from flag_notifier.utils.timestamps import ensure_utc


DEFAULT_RESPONDER_NAME = "Instructor"


class FlagStatus(str, Enum):
    """
    Moderation status of a flag.

    Lifecycle Flow:
      PENDING → REVIEWED → RESOLVED (terminal)
              ↘ RESOLVED (terminal)
              ↘ DISMISSED (terminal)

    Only PENDING matters as a "before" state for notifications.
    """

    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"

    @property
    def is_terminal(self) -> bool:
        """Check if this status is terminal"""
        return self in [FlagStatus.RESOLVED, FlagStatus.DISMISSED]


class ChangeKind(str, Enum):
    """Kinds of change the diff classifier can report."""

    STATUS_RESOLVED = "status_resolved"
    STATUS_DISMISSED = "status_dismissed"
    RESPONSE_ADDED = "response_added"
    RESPONSE_UPDATED = "response_updated"

    @classmethod
    def for_terminal_status(cls, status: FlagStatus) -> "ChangeKind":
        """Map a terminal flag status to its status-change kind."""
        if status == FlagStatus.RESOLVED:
            return cls.STATUS_RESOLVED
        if status == FlagStatus.DISMISSED:
            return cls.STATUS_DISMISSED
        raise ValueError(f"Status is not terminal: {status}")

    @property
    def is_response(self) -> bool:
        return self in [ChangeKind.RESPONSE_ADDED, ChangeKind.RESPONSE_UPDATED]


class FlagRecord(BaseModel):
    """A student-submitted flag on a chatbot answer (authoritative, remote)."""

    flag_id: str = Field(..., alias="flagId", description="Unique flag identifier")
    status: FlagStatus = Field(..., alias="flagStatus", description="Moderation status")
    instructor_response: Optional[str] = Field(
        None, alias="instructorResponse", description="Instructor's response, absent until written"
    )
    instructor_name: Optional[str] = Field(
        None, alias="instructorName", description="Display name of the responder"
    )
    created_at: Optional[datetime] = Field(
        None, alias="createdAt", description="When the flag was created"
    )
    updated_at: Optional[datetime] = Field(
        None, alias="updatedAt", description="Last update, defaults to created_at"
    )

    # Descriptive fields, not used for change detection
    question_id: Optional[str] = Field(None, alias="questionId")
    course_id: Optional[str] = Field(None, alias="courseId")
    unit_name: Optional[str] = Field(None, alias="unitName")
    flag_reason: Optional[str] = Field(None, alias="flagReason")
    question_content: Optional[Dict[str, Any]] = Field(None, alias="questionContent")

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @model_validator(mode="after")
    def default_updated_at(self):
        """updated_at falls back to created_at for never-updated flags"""
        if self.updated_at is None:
            self.updated_at = self.created_at
        return self

    @property
    def responder_name(self) -> str:
        return self.instructor_name or DEFAULT_RESPONDER_NAME

    @property
    def question_text(self) -> str:
        """The flagged question, or a generic placeholder."""
        if self.question_content and self.question_content.get("question"):
            return str(self.question_content["question"])
        return "your flagged question"

    class Config:
        populate_by_name = True


class SnapshotEntry(BaseModel):
    """Locally persisted projection of a FlagRecord.

    The full response text is kept (not just its presence) so that
    content-level edits can be detected on a later cycle.
    """

    flag_id: str = Field(..., alias="flagId")
    status: FlagStatus = Field(..., alias="flagStatus")
    instructor_response: Optional[str] = Field(None, alias="instructorResponse")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @classmethod
    def from_record(cls, record: FlagRecord) -> "SnapshotEntry":
        """Project a fetched record to the persisted subset."""
        return cls(
            flag_id=record.flag_id,
            status=record.status,
            instructor_response=record.instructor_response or None,
            updated_at=record.updated_at or record.created_at,
            created_at=record.created_at,
        )

    class Config:
        populate_by_name = True


@dataclass(frozen=True)
class ChangeEvent:
    """One user-meaningful change detected between two observations.

    Attributes:
        kind: What changed
        flag: The freshly fetched record the change was detected on
        responder_name: Who to attribute the change to
    """

    kind: ChangeKind
    flag: FlagRecord
    responder_name: str = DEFAULT_RESPONDER_NAME

    @property
    def flag_id(self) -> str:
        return self.flag.flag_id
