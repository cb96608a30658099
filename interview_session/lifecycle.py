from __future__ import annotations  # Session creation, completion and lookup

import logging
import re
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from config.settings import Settings, settings as default_settings
from observability import log_event
from output_parsing import extract_json

from .errors import AccessDenied, InvalidInput, NotFound
from .models import (
    ContextEntry,
    InterviewSession,
    InterviewSettings,
    RoleMeta,
    SessionStatus,
    SessionSummary,
    utcnow,
)
from .prompts import DEFAULT_QUESTIONS, question_messages, system_prompt
from .store import SessionStore

logger = logging.getLogger(__name__)

Complete = Callable[[Sequence[Dict[str, str]]], str]

_SESSION_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
_FENCED = re.compile(r"```[\s\S]*?```")
_ITEM_START = re.compile(r"^(\d+[.)]|-|\*|•)\s+")
_DASHED_NUMBER = re.compile(r"^\d+\s+-\s+")


def validate_session_id(session_id: object) -> str:
    if not isinstance(session_id, str) or not _SESSION_ID.match(session_id):
        raise InvalidInput("Invalid interview id")
    return session_id


def require_session(store: SessionStore, session_id: str) -> InterviewSession:
    validate_session_id(session_id)
    session = store.get(session_id)
    if session is None:
        raise NotFound("Interview not found")
    return session


def get_session(store: SessionStore, session_id: str, *, owner_id: Optional[str] = None) -> InterviewSession:
    session = require_session(store, session_id)
    if owner_id is not None and session.owner_id != owner_id:
        raise AccessDenied("Interview not found")
    return session


def list_sessions(store: SessionStore, owner_id: str) -> List[SessionSummary]:
    return store.list_for_owner(owner_id)


def parse_questions_from_text(text: Optional[str]) -> List[str]:
    """Split a numbered or bulleted free-text list into question strings."""

    if not text:
        return []
    cleaned = _FENCED.sub("", text).strip()
    items: List[str] = []
    current = ""
    for line in (raw.strip() for raw in cleaned.split("\n")):
        if not line:
            continue
        if _ITEM_START.match(line):
            if current:
                items.append(current.strip())
            current = _ITEM_START.sub("", line, count=1)
        elif _DASHED_NUMBER.match(line):
            if current:
                items.append(current.strip())
            current = _DASHED_NUMBER.sub("", line, count=1)
        else:
            current += (" " if current else "") + line
    if current:
        items.append(current.strip())
    return items


def generate_questions(
    system: str,
    role: RoleMeta,
    settings: InterviewSettings,
    complete: Complete,
    *,
    default_count: int,
) -> Tuple[List[str], str]:
    """Ask the model for the question list; returns the questions and their origin."""

    count = settings.num_questions or default_count
    try:
        reply = complete(question_messages(system, role, count, settings.difficulty))
    except Exception as exc:  # noqa: BLE001
        logger.warning("Question generation failed: %s", exc)
        return list(DEFAULT_QUESTIONS), "default"

    parsed = extract_json(reply)
    questions: List[str] = []
    source = "json"
    if isinstance(parsed, dict) and isinstance(parsed.get("questions"), list):
        questions = [str(item).strip() for item in parsed["questions"] if str(item).strip()]
    else:
        questions = parse_questions_from_text(reply)
        source = "text"
    if not questions:
        return list(DEFAULT_QUESTIONS), "default"
    if settings.num_questions:
        questions = questions[: settings.num_questions]
    return questions, source


def create_session(
    owner_id: str,
    role: RoleMeta,
    interview_settings: InterviewSettings,
    *,
    store: SessionStore,
    complete: Complete,
    settings: Optional[Settings] = None,
) -> Tuple[InterviewSession, str]:
    """Generate questions, persist a new in-progress session and return it with its first question."""

    cfg = settings or default_settings
    if not owner_id:
        raise InvalidInput("Owner id is required")
    started = time.perf_counter()
    system = system_prompt(role, interview_settings)
    questions, source = generate_questions(
        system,
        role,
        interview_settings,
        complete,
        default_count=cfg.DEFAULT_NUM_QUESTIONS,
    )
    if interview_settings.num_questions is None:
        interview_settings = interview_settings.model_copy(update={"num_questions": len(questions)})
    first_question = questions[0]
    now = utcnow()
    session = InterviewSession(
        id=uuid4().hex,
        owner_id=owner_id,
        role_meta=role,
        settings=interview_settings,
        questions=questions,
        cursor=0,
        context=[
            ContextEntry(role="system", content=system),
            ContextEntry(role="assistant", content=first_question),
        ],
        status=SessionStatus.IN_PROGRESS,
        created_at=now,
        updated_at=now,
    )
    store.create(session)
    log_event(
        "session_created",
        session.id,
        outcome=source,
        questions=len(questions),
        ms=int((time.perf_counter() - started) * 1000),
    )
    return session, first_question


def complete_session(
    session_id: str,
    transcript: Optional[str],
    media_ref: Optional[str] = None,
    *,
    store: SessionStore,
) -> str:
    """Mark the session completed and store its transcript and media reference.

    Calling it again overwrites transcript/media reference and re-stamps
    ``completed_at``.
    """

    if transcript is not None and not isinstance(transcript, str):
        raise InvalidInput("Transcript must be a string")
    with store.lock(session_id):
        require_session(store, session_id)
        patch = {
            "transcript": transcript or "",
            "status": SessionStatus.COMPLETED,
            "completed_at": utcnow(),
        }
        if media_ref is not None:
            patch["media_ref"] = media_ref
        store.update(session_id, patch)
    log_event("session_completed", session_id, outcome="completed", media=media_ref is not None)
    return session_id


__all__ = [
    "complete_session",
    "create_session",
    "generate_questions",
    "get_session",
    "list_sessions",
    "parse_questions_from_text",
    "require_session",
    "validate_session_id",
]
