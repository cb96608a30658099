from __future__ import annotations  # Canonical analysis shape

import json
import re
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from output_parsing.scraper import SCORE_BUCKETS

CANONICAL_SCORES = ("communication", "technical", "structure", "confidence", "nonverbal")
PARSE_FAILURE_NOTE = "Could not parse structured analysis; inspect raw output."
ANALYSIS_KEYS = ("scores", "summary", "improvements", "strengths")

Score = Optional[Union[int, Literal["N/A"]]]

_LEADING_NUMBER = re.compile(r"^\s*(\d+(?:\.\d+)?)")
_NOT_APPLICABLE = {"N/A", "NA", "N.A.", "NOT APPLICABLE"}


class AnalysisScores(BaseModel):
    communication: Score = None
    technical: Score = None
    structure: Score = None
    confidence: Score = None
    nonverbal: Score = None


class Analysis(BaseModel):
    scores: AnalysisScores = Field(default_factory=AnalysisScores)
    summary: str = ""
    improvements: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)


AnalysisSource = Literal["extract", "repair", "scrape", "reformat", "reformat_terse", "fallback"]


class AnalysisOutcome(BaseModel):
    analysis: Analysis
    raw: str
    source: AnalysisSource


def coerce_score(value: Any) -> Score:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(round(value))
    if isinstance(value, str):
        text = value.strip()
        if text.upper() in _NOT_APPLICABLE:
            return "N/A"
        match = _LEADING_NUMBER.match(text)
        if match:
            return int(round(float(match.group(1))))
    return None


def _canonical_key(key: str) -> Optional[str]:
    lowered = key.lower()
    if lowered in CANONICAL_SCORES:
        return lowered
    for bucket, hints in SCORE_BUCKETS:
        if bucket in CANONICAL_SCORES and any(hint in lowered for hint in hints):
            return bucket
    return None


def coerce_scores(raw: Any) -> AnalysisScores:
    values: Dict[str, Score] = {}
    if isinstance(raw, dict):
        for key, value in raw.items():
            bucket = _canonical_key(str(key))
            if bucket is not None and bucket not in values:
                values[bucket] = coerce_score(value)
    return AnalysisScores(**values)


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return json.dumps(value, ensure_ascii=False)


def _coerce_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    items: List[str] = []
    for item in value:
        text = _coerce_text(item)
        if text:
            items.append(text)
    return items


def coerce_analysis(value: Any) -> Optional[Analysis]:
    """Normalize a parsed model reply into the canonical shape.

    Returns ``None`` for anything that is not a JSON object carrying at least
    one analysis key, so a nested fragment such as a bare scores object lets
    the caller move on to its next strategy.
    """

    if not isinstance(value, dict) or not any(key in value for key in ANALYSIS_KEYS):
        return None
    return Analysis(
        scores=coerce_scores(value.get("scores")),
        summary=_coerce_text(value.get("summary")),
        improvements=_coerce_list(value.get("improvements")),
        strengths=_coerce_list(value.get("strengths")),
    )


__all__ = [
    "ANALYSIS_KEYS",
    "Analysis",
    "AnalysisOutcome",
    "AnalysisScores",
    "AnalysisSource",
    "CANONICAL_SCORES",
    "PARSE_FAILURE_NOTE",
    "Score",
    "coerce_analysis",
    "coerce_score",
    "coerce_scores",
]
