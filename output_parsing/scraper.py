"""Last-resort field recovery for analysis replies that hold no usable JSON."""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

ScoreValue = Union[int, str]

# Ordered: the first bucket whose hint occurs in the key wins.
SCORE_BUCKETS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("communication", ("commun", "clarity")),
    ("technical", ("technical",)),
    ("problem", ("problem", "solv")),
    ("structure", ("structure", "organ")),
    ("confidence", ("confidence", "presence")),
    ("nonverbal", ("nonverb",)),
)

LIST_FIELDS = ("improvements", "strengths")
HEADING_WINDOW = 600
MAX_LINE_ITEM = 200

_SCORE_PAIR = re.compile(r"""["']?([A-Za-z0-9 /()\-]+?)["']?\s*:\s*"?(\d+|N/A)?"?""", re.IGNORECASE)
_QUOTE_AWARE_COMMA = re.compile(r""",\s*(?=(?:[^"']*"[^"']*")*[^"']*$)""")
_BULLET = re.compile(r"^[-•*]\s*(.+)$")
_NUMBERED = re.compile(r"^\d+[.)]\s*(.+)$")
_QUOTED = re.compile(r'^"(.+)"$')
_LEADING_MARKERS = re.compile(r"^[\-\d.)\s]+")


class ScrapedFields(BaseModel):
    """Partial analysis fields recovered by pattern matching."""

    scores: Dict[str, ScoreValue] = Field(default_factory=dict)
    improvements: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.scores or self.improvements or self.strengths)


def _bucket_for(key: str) -> Optional[str]:
    lowered = key.lower()
    for bucket, hints in SCORE_BUCKETS:
        if any(hint in lowered for hint in hints):
            return bucket
    return None


def _scrape_scores(text: str) -> Dict[str, ScoreValue]:
    scores: Dict[str, ScoreValue] = {}
    for match in _SCORE_PAIR.finditer(text):
        raw_value = match.group(2)
        if not raw_value:
            continue
        bucket = _bucket_for(match.group(1).strip())
        if bucket is None:
            continue
        scores[bucket] = int(raw_value) if raw_value.isdigit() else raw_value.upper()
    return scores


def _json_array_items(text: str, key: str) -> List[str]:
    pattern = re.compile(rf'"{re.escape(key)}"\s*:\s*\[([\s\S]*?)\]', re.IGNORECASE)
    match = pattern.search(text)
    if not match or not match.group(1):
        return []
    items = []
    for chunk in _QUOTE_AWARE_COMMA.split(match.group(1)):
        item = chunk.strip().strip("\"'").strip()
        if item:
            items.append(item)
    return items


def _starts_section(line: str, key: str) -> bool:
    """A heading line (`Strengths:`) or another list field ends the current block."""

    lowered = line.lower()
    if lowered.endswith(":"):
        return True
    return any(lowered.startswith(other) for other in LIST_FIELDS if other != key.lower())


def _heading_items(text: str, key: str) -> List[str]:
    pattern = re.compile(
        rf"{re.escape(key)}[ \t]*[:\-]?[ \t]*\n?([\s\S]{{0,{HEADING_WINDOW}}})",
        re.IGNORECASE,
    )
    match = pattern.search(text)
    if not match or not match.group(1):
        return []
    items: List[str] = []
    for line in match.group(1).split("\n"):
        line = line.strip()
        if not line:
            continue
        if _starts_section(line, key):
            break
        marked = _BULLET.match(line) or _NUMBERED.match(line) or _QUOTED.match(line)
        if marked:
            items.append(marked.group(1).strip())
        elif len(line) < MAX_LINE_ITEM and line.endswith("."):
            items.append(_LEADING_MARKERS.sub("", line).strip())
    return items


def _scrape_list(text: str, key: str) -> List[str]:
    for variant in (key, key.title()):
        items = _json_array_items(text, variant) or _heading_items(text, variant)
        if items:
            return items
    return []


def scrape_fields(text: Optional[str]) -> ScrapedFields:
    """Pull scores and list fields out of loosely formatted analysis text.

    Never raises; callers get empty containers when nothing is recognizable.
    """

    if not text:
        return ScrapedFields()
    return ScrapedFields(
        scores=_scrape_scores(text),
        improvements=_scrape_list(text, "improvements"),
        strengths=_scrape_list(text, "strengths"),
    )


__all__ = ["SCORE_BUCKETS", "ScrapedFields", "scrape_fields"]
