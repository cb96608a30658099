from __future__ import annotations  # Candidate utterance decoding and classification

from enum import Enum
from typing import Any, Tuple

from pydantic import BaseModel

from .errors import InvalidInput

SKIP_SENTINEL = "__skip__"
START_SENTINEL = "__start__"

# Matched as prefix or substring of the lower-cased utterance; deliberately loose,
# so an answer that merely mentions "explain" reads as a clarification request.
CLARIFY_PHRASES: Tuple[str, ...] = (
    "what",
    "could you",
    "can you",
    "please repeat",
    "again",
    "i didn't",
    "clarify",
    "explain",
    "repeat",
    "say again",
    "did you mean",
)


class AnswerKind(str, Enum):
    SKIP = "skip"
    START = "start"
    TEXT = "text"


class Utterance(str, Enum):
    CONTROL = "control"
    CLARIFICATION = "clarification"
    SUBSTANTIVE = "substantive"


class Answer(BaseModel):  # Candidate input decoded once at the boundary
    kind: AnswerKind
    text: str = ""

    @property
    def is_control(self) -> bool:
        return self.kind is not AnswerKind.TEXT


def decode_answer(raw: Any) -> Answer:
    if not isinstance(raw, str):
        raise InvalidInput("Answer is required (string)")
    if raw.strip() == SKIP_SENTINEL:
        return Answer(kind=AnswerKind.SKIP, text=raw)
    if raw.strip() == START_SENTINEL:
        return Answer(kind=AnswerKind.START, text=raw)
    return Answer(kind=AnswerKind.TEXT, text=raw)


def is_clarification(text: str) -> bool:
    lowered = text.strip().lower()
    if not lowered:
        return False
    if lowered.endswith("?"):
        return True
    return any(lowered.startswith(phrase) or phrase in lowered for phrase in CLARIFY_PHRASES)


def classify(answer: Answer) -> Utterance:
    """Control sentinels win over clarification, which wins over substantive."""

    if answer.is_control:
        return Utterance.CONTROL
    if is_clarification(answer.text):
        return Utterance.CLARIFICATION
    return Utterance.SUBSTANTIVE


__all__ = [
    "Answer",
    "AnswerKind",
    "CLARIFY_PHRASES",
    "SKIP_SENTINEL",
    "START_SENTINEL",
    "Utterance",
    "classify",
    "decode_answer",
    "is_clarification",
]
