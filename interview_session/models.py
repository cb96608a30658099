from __future__ import annotations  # Interview session document models

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from analysis.models import Analysis

Role = Literal["system", "assistant", "user"]

_FORWARD: dict[str, frozenset[str]] = {
    "in_progress": frozenset({"in_progress", "questions_completed", "completed"}),
    "questions_completed": frozenset({"questions_completed", "completed"}),
    "completed": frozenset({"completed"}),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):  # Forward-only interview lifecycle
    IN_PROGRESS = "in_progress"
    QUESTIONS_COMPLETED = "questions_completed"
    COMPLETED = "completed"

    def can_move_to(self, target: "SessionStatus") -> bool:
        return target.value in _FORWARD[self.value]


class WireModel(BaseModel):  # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContextEntry(WireModel):  # One conversation log entry
    role: Role
    content: str


class RoleMeta(WireModel):  # Position the candidate interviews for
    company: str = ""
    position: str = ""
    description: str = ""
    requirements: str = ""
    resume_text: str = ""


class InterviewSettings(WireModel):  # Interview shape chosen at creation
    num_questions: Optional[int] = Field(default=None, ge=1, le=50)
    difficulty: Optional[str] = None
    mode: Optional[str] = None


class InterviewSession(WireModel):  # Persisted interview document
    id: str
    owner_id: str
    role_meta: RoleMeta
    settings: InterviewSettings = Field(default_factory=InterviewSettings)
    questions: List[str] = Field(default_factory=list)
    cursor: int = Field(default=0, ge=0)
    context: List[ContextEntry] = Field(default_factory=list)
    status: SessionStatus = SessionStatus.IN_PROGRESS
    transcript: Optional[str] = None
    media_ref: Optional[str] = None
    analysis: Optional[Analysis] = None
    analysis_raw: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    analysis_at: Optional[datetime] = None

    @property
    def system_prompt(self) -> str:
        if self.context and self.context[0].role == "system":
            return self.context[0].content
        return ""

    def current_question(self) -> Optional[str]:
        if self.questions and 0 <= self.cursor < len(self.questions):
            return self.questions[self.cursor]
        return self.last_assistant_message()

    def last_assistant_message(self) -> Optional[str]:
        for entry in reversed(self.context):
            if entry.role == "assistant":
                return entry.content
        return None

    def transcript_text(self) -> str:
        if self.transcript:
            return self.transcript
        return "\n".join(f"{entry.role.upper()}: {entry.content}" for entry in self.context)


class SessionSummary(WireModel):  # Listing row for the dashboard
    id: str
    company: str
    position: str
    status: SessionStatus
    created_at: datetime
    updated_at: datetime


class TurnResult(WireModel):  # Engine reply for a single turn
    next_question: Optional[str] = None
    follow_up: Optional[str] = None
    done: bool = False


def window(context: Sequence[ContextEntry], size: int) -> List[ContextEntry]:
    """Return the last ``size`` entries of ``context`` without mutating it."""

    if size <= 0:
        return []
    return list(context[-size:])


def as_messages(entries: Sequence[ContextEntry]) -> List[dict[str, str]]:
    return [{"role": entry.role, "content": entry.content} for entry in entries]


__all__ = [
    "ContextEntry",
    "InterviewSession",
    "InterviewSettings",
    "Role",
    "RoleMeta",
    "SessionStatus",
    "SessionSummary",
    "TurnResult",
    "as_messages",
    "utcnow",
    "window",
]
