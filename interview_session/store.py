from __future__ import annotations  # Interview session persistence

import sqlite3
import threading
import weakref
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional, Protocol

from storage.migrate import migrate
from storage.sqlite import get_conn

from .errors import InvalidState, NotFound, StoreError
from .models import InterviewSession, SessionStatus, SessionSummary, utcnow

_SESSION_LOCKS: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
_SESSION_LOCKS_GUARD = threading.Lock()

IMMUTABLE_FIELDS = frozenset({"id", "owner_id", "role_meta", "settings", "questions", "created_at"})


def session_lock(session_id: str) -> threading.Lock:
    """Process-wide lock serializing read-modify-write cycles for one session.

    Entries live only while some caller holds the lock object.
    """

    with _SESSION_LOCKS_GUARD:
        lock = _SESSION_LOCKS.get(session_id)
        if lock is None:
            lock = threading.Lock()
            _SESSION_LOCKS[session_id] = lock
    return lock


def apply_patch(session: InterviewSession, patch: Mapping[str, Any]) -> InterviewSession:
    """Return a validated copy of ``session`` with ``patch`` applied.

    Refuses writes to creation-time fields and backward status moves.
    """

    frozen = IMMUTABLE_FIELDS.intersection(patch)
    if frozen:
        raise InvalidState(f"Immutable fields cannot be updated: {', '.join(sorted(frozen))}")
    if "status" in patch:
        target = SessionStatus(patch["status"])
        if not session.status.can_move_to(target):
            raise InvalidState(f"Cannot move session from {session.status.value} to {target.value}")
    data = session.model_dump()
    for key, value in patch.items():
        data[key] = value.model_dump() if hasattr(value, "model_dump") else value
    data["updated_at"] = utcnow()
    return InterviewSession.model_validate(data)


def summarize(session: InterviewSession) -> SessionSummary:
    return SessionSummary(
        id=session.id,
        company=session.role_meta.company,
        position=session.role_meta.position,
        status=session.status,
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


class SessionStore(Protocol):  # Session persistence interface
    def create(self, session: InterviewSession) -> None: ...

    def get(self, session_id: str) -> Optional[InterviewSession]: ...

    def update(self, session_id: str, patch: Mapping[str, Any]) -> InterviewSession: ...

    def list_for_owner(self, owner_id: str) -> List[SessionSummary]: ...

    def lock(self, session_id: str) -> threading.Lock: ...


class InMemorySessionStore:  # Thread-safe in-memory store
    def __init__(self) -> None:
        self._sessions: Dict[str, InterviewSession] = {}
        self._lock = RLock()

    def create(self, session: InterviewSession) -> None:  # Persist new session
        with self._lock:
            self._sessions[session.id] = session

    def get(self, session_id: str) -> Optional[InterviewSession]:  # Load session
        with self._lock:
            return self._sessions.get(session_id)

    def update(self, session_id: str, patch: Mapping[str, Any]) -> InterviewSession:  # Apply a partial update
        with self._lock:
            stored = self._sessions.get(session_id)
            if stored is None:
                raise NotFound("Interview not found")
            updated = apply_patch(stored, patch)
            self._sessions[session_id] = updated
            return updated

    def list_for_owner(self, owner_id: str) -> List[SessionSummary]:  # Newest first
        with self._lock:
            owned = [item for item in self._sessions.values() if item.owner_id == owner_id]
        owned.sort(key=lambda item: item.created_at, reverse=True)
        return [summarize(item) for item in owned]

    def lock(self, session_id: str) -> threading.Lock:
        return session_lock(session_id)


class SqliteSessionStore:  # SQLite-backed document store
    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path
        migrate(db_path)

    def create(self, session: InterviewSession) -> None:  # Insert a new session row
        try:
            with get_conn(self._db_path) as conn:
                conn.execute(
                    """INSERT INTO interview_sessions
                       (id, owner_id, status, created_at, updated_at, document)
                       VALUES (?, ?, ?, ?, ?, ?)""",
                    (
                        session.id,
                        session.owner_id,
                        session.status.value,
                        session.created_at.isoformat(),
                        session.updated_at.isoformat(),
                        session.model_dump_json(),
                    ),
                )
        except sqlite3.Error as exc:
            raise StoreError("Failed to create interview session") from exc

    def get(self, session_id: str) -> Optional[InterviewSession]:  # Load a session document
        try:
            with get_conn(self._db_path) as conn:
                row = conn.execute(
                    "SELECT document FROM interview_sessions WHERE id = ?",
                    (session_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError("Failed to load interview session") from exc
        if row is None:
            return None
        return InterviewSession.model_validate_json(row["document"])

    def update(self, session_id: str, patch: Mapping[str, Any]) -> InterviewSession:  # Read-modify-write in one transaction
        try:
            with get_conn(self._db_path) as conn:
                conn.execute("BEGIN IMMEDIATE")
                row = conn.execute(
                    "SELECT document FROM interview_sessions WHERE id = ?",
                    (session_id,),
                ).fetchone()
                if row is None:
                    raise NotFound("Interview not found")
                updated = apply_patch(InterviewSession.model_validate_json(row["document"]), patch)
                conn.execute(
                    """UPDATE interview_sessions
                       SET status = ?, updated_at = ?, document = ?
                       WHERE id = ?""",
                    (
                        updated.status.value,
                        updated.updated_at.isoformat(),
                        updated.model_dump_json(),
                        session_id,
                    ),
                )
        except sqlite3.Error as exc:
            raise StoreError("Failed to update interview session") from exc
        return updated

    def list_for_owner(self, owner_id: str) -> List[SessionSummary]:  # Newest first
        try:
            with get_conn(self._db_path) as conn:
                rows = conn.execute(
                    """SELECT document FROM interview_sessions
                       WHERE owner_id = ?
                       ORDER BY created_at DESC, id DESC""",
                    (owner_id,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError("Failed to list interview sessions") from exc
        return [summarize(InterviewSession.model_validate_json(row["document"])) for row in rows]

    def lock(self, session_id: str) -> threading.Lock:
        return session_lock(session_id)


__all__ = [
    "IMMUTABLE_FIELDS",
    "InMemorySessionStore",
    "SessionStore",
    "SqliteSessionStore",
    "apply_patch",
    "session_lock",
    "summarize",
]
