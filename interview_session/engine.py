"""Turn decision engine for interview sessions.

Each call handles exactly one candidate utterance: it records the utterance,
decides whether to follow up, advance to the next prepared question or end,
and persists the result in a single store update. Model failures never reach
the caller; every branch has a deterministic fallback so a session always
makes progress.
"""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel

from config.settings import Settings, settings as default_settings
from observability import log_event
from output_parsing import extract_json, repair_json

from .answers import AnswerKind, Utterance, classify, decode_answer
from .errors import InvalidState
from .lifecycle import require_session, validate_session_id
from .models import ContextEntry, InterviewSession, SessionStatus, TurnResult, as_messages, window
from .prompts import (
    FREEFORM_FALLBACK,
    GENERIC_FOLLOW_UP,
    clarification_messages,
    decision_messages,
)
from .store import SessionStore

logger = logging.getLogger(__name__)

Complete = Callable[[Sequence[Dict[str, str]]], str]
Action = Literal["ask", "proceed", "end"]

COMPLETION_PATTERN = re.compile(r"conclud|that concludes|end of interview", re.IGNORECASE)


class Decision(BaseModel):  # Model verdict for a substantive answer
    action: Action
    text: Optional[str] = None


@dataclass
class _Turn:  # Working copy of the mutable part of a session
    session: InterviewSession
    context: List[ContextEntry]
    cursor: int
    status: SessionStatus
    action: str = "none"
    source: str = "none"
    notes: List[str] = field(default_factory=list)

    def say(self, text: str) -> None:
        self.context.append(ContextEntry(role="assistant", content=text))

    def patch(self) -> Dict[str, Any]:
        changes: Dict[str, Any] = {"context": self.context}
        if self.cursor != self.session.cursor:
            changes["cursor"] = self.cursor
        if self.status is not self.session.status:
            changes["status"] = self.status
        return changes


def parse_decision(reply: Optional[str]) -> Optional[Decision]:
    """Read an ask/proceed/end verdict from model output.

    Objects without a string ``action`` are not decisions. Unknown actions
    mean proceed.
    """

    if not reply:
        return None
    value = extract_json(reply)
    if not isinstance(value, dict):
        value = repair_json(reply)
    if not isinstance(value, dict):
        return None
    action = value.get("action")
    if not isinstance(action, str):
        return None
    action = action.strip().lower()
    if action not in ("ask", "proceed", "end"):
        return Decision(action="proceed")
    text = value.get("text")
    return Decision(action=action, text=text.strip() if isinstance(text, str) else None)


def heuristic_decision(answer: str, short_answer_chars: int) -> Decision:
    if len(answer.strip()) < short_answer_chars:
        return Decision(action="ask", text=GENERIC_FOLLOW_UP)
    return Decision(action="proceed")


def _chat(complete: Complete, messages: Sequence[Dict[str, str]], purpose: str, session_id: str) -> Optional[str]:
    try:
        reply = complete(messages)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Model call failed purpose=%s session=%s: %s", purpose, session_id, exc)
        return None
    if not isinstance(reply, str) or not reply.strip():
        logger.warning("Model returned empty reply purpose=%s session=%s", purpose, session_id)
        return None
    return reply.strip()


def _advance(turn: _Turn, complete: Complete) -> TurnResult:
    questions = turn.session.questions
    if questions:
        next_index = turn.cursor + 1
        if next_index < len(questions):
            turn.cursor = next_index
            turn.action = "next_question"
            turn.say(questions[next_index])
            return TurnResult(next_question=questions[next_index], done=False)
        turn.cursor = len(questions) - 1
        turn.status = SessionStatus.QUESTIONS_COMPLETED
        turn.action = "questions_completed"
        return TurnResult(next_question=None, done=True)

    reply = _chat(complete, as_messages(turn.context), "freeform", turn.session.id)
    if reply is None:
        reply = FREEFORM_FALLBACK
        turn.notes.append("freeform_fallback")
    turn.say(reply)
    done = bool(COMPLETION_PATTERN.search(reply))
    if done:
        turn.status = SessionStatus.QUESTIONS_COMPLETED
    turn.action = "freeform"
    return TurnResult(next_question=reply, done=done)


def _clarify(turn: _Turn, utterance: str, complete: Complete) -> TurnResult:
    last_question = turn.session.last_assistant_message()
    messages = clarification_messages(turn.session.system_prompt, last_question, utterance)
    reply = _chat(complete, messages, "clarify", turn.session.id)
    if reply is None:
        reply = last_question or FREEFORM_FALLBACK
        turn.notes.append("clarify_fallback")
    turn.say(reply)
    turn.action = "clarify"
    return TurnResult(follow_up=reply, done=False)


def _decide(turn: _Turn, utterance: str, complete: Complete, cfg: Settings) -> TurnResult:
    recent = window(turn.context, cfg.DECISION_WINDOW)
    reply = _chat(complete, decision_messages(turn.session.system_prompt, recent), "decision", turn.session.id)
    decision = parse_decision(reply)
    turn.source = "model"
    if decision is None:
        if reply is not None:
            logger.warning("No valid decision in model reply session=%s", turn.session.id)
        decision = heuristic_decision(utterance, cfg.SHORT_ANSWER_CHARS)
        turn.source = "heuristic"

    if decision.action == "ask":
        follow_up = decision.text or GENERIC_FOLLOW_UP
        turn.say(follow_up)
        turn.action = "ask"
        return TurnResult(follow_up=follow_up, done=False)
    if decision.action == "end":
        turn.status = SessionStatus.QUESTIONS_COMPLETED
        turn.action = "end"
        return TurnResult(next_question=None, done=True)
    return _advance(turn, complete)


def submit_turn(
    session_id: str,
    answer: Any,
    *,
    store: SessionStore,
    complete: Complete,
    settings: Optional[Settings] = None,
) -> TurnResult:
    """Process one candidate utterance for ``session_id``.

    Raises ``InvalidInput``, ``NotFound`` or ``InvalidState`` for structural
    problems; rejected turns leave the session untouched.
    """

    cfg = settings or default_settings
    validate_session_id(session_id)
    decoded = decode_answer(answer)
    started = time.perf_counter()

    with store.lock(session_id):
        session = require_session(store, session_id)
        if session.status is not SessionStatus.IN_PROGRESS:
            raise InvalidState("Interview is no longer accepting answers")

        if decoded.kind is AnswerKind.START:
            return TurnResult(next_question=session.current_question(), done=False)

        utterance = classify(decoded)
        turn = _Turn(
            session=session,
            context=[*session.context, ContextEntry(role="user", content=decoded.text)],
            cursor=session.cursor,
            status=session.status,
        )
        if decoded.kind is AnswerKind.SKIP:
            turn.source = "skip"
            result = _advance(turn, complete)
        elif utterance is Utterance.CLARIFICATION:
            result = _clarify(turn, decoded.text, complete)
        else:
            result = _decide(turn, decoded.text, complete, cfg)
        store.update(session_id, turn.patch())

    log_event(
        "turn",
        session_id,
        intent=utterance.value,
        action=turn.action,
        decision=turn.source,
        cursor=turn.cursor,
        outcome=turn.status.value,
        notes=turn.notes,
        ms=int((time.perf_counter() - started) * 1000),
    )
    return result


__all__ = ["COMPLETION_PATTERN", "Decision", "heuristic_decision", "parse_decision", "submit_turn"]
