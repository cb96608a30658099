"""Recover JSON values from free-form model output."""
from __future__ import annotations

import json
import re
from typing import Any, Callable, Iterable, Optional, TypeVar

T = TypeVar("T")

_FENCE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_FENCE_MARK = re.compile(r"```(?:json)?", re.IGNORECASE)
_TRAILING_BRACE_COMMA = re.compile(r",\s*}")
_TRAILING_BRACKET_COMMA = re.compile(r",\s*]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f]+")

MAX_APPENDED_CLOSERS = 6
MAX_TAIL_CUTS = 5


def _loads(candidate: str) -> Optional[Any]:
    try:
        return json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None


def _parses(candidate: str) -> bool:
    try:
        json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return False
    return True


def _from_fence(text: str) -> Optional[Any]:
    match = _FENCE_BLOCK.search(text)
    if match and match.group(1):
        return _loads(match.group(1).strip())
    return None


def _from_outer_braces(text: str) -> Optional[Any]:
    first = text.find("{")
    last = text.rfind("}")
    if first >= 0 and last > first:
        return _loads(text[first : last + 1])
    return None


def _from_balanced_scan(text: str) -> Optional[Any]:
    stack: list[int] = []
    for index, char in enumerate(text):
        if char == "{":
            stack.append(index)
        elif char == "}" and stack:
            candidate = text[stack.pop() : index + 1]
            if _parses(candidate):
                return json.loads(candidate)
    return None


def extract_json(text: Optional[str]) -> Optional[Any]:
    """Return the first JSON value found in ``text`` or ``None``.

    Strategies run in order: fenced block, first-to-last brace span, then a
    stack scan that tries every balanced ``{...}`` span as it closes. The scan
    returns the innermost span that parses, which is not necessarily the
    largest one.
    """

    if not text:
        return None
    for strategy in (_from_fence, _from_outer_braces, _from_balanced_scan):
        value = strategy(text)
        if value is not None:
            return value
    return None


def _closers(work: str) -> str:
    """Closing tokens for every unmatched opener, innermost first.

    At most ``MAX_APPENDED_CLOSERS`` of each kind are emitted. A string left
    open by truncation is closed before any brace or bracket.
    """

    stack: list[str] = []
    in_string = False
    escaped = False
    for char in work:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "{[":
            stack.append("}" if char == "{" else "]")
        elif char in "}]" and stack and stack[-1] == char:
            stack.pop()
    tail = '"' if in_string else ""
    budget = {"}": MAX_APPENDED_CLOSERS, "]": MAX_APPENDED_CLOSERS}
    for closer in reversed(stack):
        if budget[closer] > 0:
            budget[closer] -= 1
            tail += closer
    return tail


def repair_json(candidate: Optional[str]) -> Optional[Any]:
    """Normalize a truncated or sloppy JSON candidate until it parses."""

    if not candidate:
        return None
    work = _FENCE_MARK.sub("", candidate).replace("```", "")
    work = _TRAILING_BRACE_COMMA.sub("}", work)
    work = _TRAILING_BRACKET_COMMA.sub("]", work)
    first = work.find("{")
    if first > 0:
        work = work[first:]

    value = _loads(work)
    if value is not None:
        return value

    work = _CONTROL_CHARS.sub("", work).strip()
    for cut in range(MAX_TAIL_CUTS + 1):
        base = work[: len(work) - cut] if cut else work
        base = base.rstrip().rstrip(",")
        if not base:
            break
        value = _loads(base + _closers(base))
        if value is not None:
            return value
    return None


def first_success(attempts: Iterable[Callable[[], Optional[T]]]) -> Optional[T]:
    """Run ``attempts`` in order and return the first non-``None`` result."""

    for attempt in attempts:
        result = attempt()
        if result is not None:
            return result
    return None


__all__ = ["extract_json", "repair_json", "first_success"]
