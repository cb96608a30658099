from __future__ import annotations  # Re-export interview_session public API

from .answers import SKIP_SENTINEL, START_SENTINEL, Answer, AnswerKind, Utterance, classify, decode_answer
from .engine import Decision, parse_decision, submit_turn
from .errors import AccessDenied, InterviewError, InvalidInput, InvalidState, NotFound, StoreError
from .lifecycle import complete_session, create_session, get_session, list_sessions
from .models import (
    ContextEntry,
    InterviewSession,
    InterviewSettings,
    RoleMeta,
    SessionStatus,
    SessionSummary,
    TurnResult,
    window,
)
from .store import InMemorySessionStore, SessionStore, SqliteSessionStore

__all__ = [
    "SKIP_SENTINEL",
    "START_SENTINEL",
    "Answer",
    "AnswerKind",
    "Utterance",
    "classify",
    "decode_answer",
    "Decision",
    "parse_decision",
    "submit_turn",
    "AccessDenied",
    "InterviewError",
    "InvalidInput",
    "InvalidState",
    "NotFound",
    "StoreError",
    "complete_session",
    "create_session",
    "get_session",
    "list_sessions",
    "ContextEntry",
    "InterviewSession",
    "InterviewSettings",
    "RoleMeta",
    "SessionStatus",
    "SessionSummary",
    "TurnResult",
    "window",
    "InMemorySessionStore",
    "SessionStore",
    "SqliteSessionStore",
]
