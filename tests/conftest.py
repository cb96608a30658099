import os
import sys
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from analysis.prompts import ANALYST_SYSTEM, STRICT_FORMATTER_SYSTEM, TERSE_FORMATTER_SYSTEM
from config.registry import COMPLETION_KEY, bind_model
from config.settings import Settings, settings
from interview_session import (
    ContextEntry,
    InMemorySessionStore,
    InterviewSession,
    InterviewSettings,
    RoleMeta,
    SessionStatus,
)
from interview_session.models import utcnow
from interview_session.prompts import DECISION_INSTRUCTION
from observability import configure_logging
from storage.migrate import migrate


def purpose_of(messages: Sequence[Dict[str, str]]) -> str:
    system = messages[0]["content"] if messages else ""
    last = messages[-1]["content"] if messages else ""
    if system == ANALYST_SYSTEM:
        return "analysis"
    if system == STRICT_FORMATTER_SYSTEM:
        return "reformat"
    if system == TERSE_FORMATTER_SYSTEM:
        return "reformat_terse"
    if last == DECISION_INSTRUCTION:
        return "decision"
    if "asked for clarification" in last:
        return "clarify"
    if "interview questions for the role" in last:
        return "questions"
    return "freeform"


class ScriptedModel:
    """Chat completion stand-in that replies from per-purpose queues.

    A purpose with nothing queued behaves like an unreachable model.
    """

    def __init__(self) -> None:
        self.replies: Dict[str, List[object]] = {}
        self.calls: List[tuple] = []

    def script(self, purpose: str, *replies: object) -> "ScriptedModel":
        self.replies.setdefault(purpose, []).extend(replies)
        return self

    def purposes(self) -> List[str]:
        return [purpose for purpose, _ in self.calls]

    def __call__(self, messages: Sequence[Dict[str, str]]) -> str:
        purpose = purpose_of(messages)
        self.calls.append((purpose, list(messages)))
        queue = self.replies.get(purpose)
        if not queue:
            raise RuntimeError(f"model unavailable for {purpose}")
        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture(autouse=True, scope="session")
def quiet_logs():
    configure_logging(Settings(_env_file=None, ENABLE_FILE_LOGS=False))
    yield


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture
def model() -> ScriptedModel:
    scripted = ScriptedModel()
    bind_model(COMPLETION_KEY, scripted)
    return scripted


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def seed_session(store) -> Callable[..., InterviewSession]:
    counter = {"n": 0}

    def _seed(
        questions: Optional[List[str]] = None,
        *,
        cursor: int = 0,
        status: SessionStatus = SessionStatus.IN_PROGRESS,
        owner_id: str = "user-1",
        context: Optional[List[ContextEntry]] = None,
        transcript: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> InterviewSession:
        counter["n"] += 1
        questions = ["Q1", "Q2"] if questions is None else questions
        if context is None:
            context = [ContextEntry(role="system", content="You are an interviewer.")]
            if questions:
                context.append(ContextEntry(role="assistant", content=questions[cursor]))
        session = InterviewSession(
            id=f"session-{counter['n']}",
            owner_id=owner_id,
            role_meta=RoleMeta(company="Acme", position="Backend Engineer", resume_text="Python, SQL"),
            settings=InterviewSettings(num_questions=len(questions) or None),
            questions=questions,
            cursor=cursor,
            context=context,
            status=status,
            transcript=transcript,
            created_at=created_at or utcnow(),
        )
        store.create(session)
        return session

    return _seed
