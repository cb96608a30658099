"""Turn free-form analysis replies into the canonical analysis shape."""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from output_parsing import extract_json, first_success, repair_json, scrape_fields

from .models import (
    Analysis,
    AnalysisOutcome,
    AnalysisScores,
    AnalysisSource,
    PARSE_FAILURE_NOTE,
    coerce_analysis,
)
from .prompts import strict_reformat_messages, terse_reformat_messages

logger = logging.getLogger(__name__)

Complete = Callable[[Sequence[Dict[str, str]]], str]
Attempt = Callable[[], Optional[AnalysisOutcome]]

SUMMARY_CHARS = 1000
SUMMARY_LINES = 3


def _outcome(value: object, raw: str, source: AnalysisSource) -> Optional[AnalysisOutcome]:
    analysis = coerce_analysis(value)
    if analysis is None:
        return None
    return AnalysisOutcome(analysis=analysis, raw=raw, source=source)


def _direct(llm_text: str) -> Optional[AnalysisOutcome]:
    return _outcome(extract_json(llm_text), llm_text, "extract")


def _repaired(llm_text: str) -> Optional[AnalysisOutcome]:
    first = llm_text.find("{")
    if first < 0:
        return None
    return _outcome(repair_json(llm_text[first:]), llm_text, "repair")


def _scraped(llm_text: str, summary_chars: int) -> Optional[AnalysisOutcome]:
    fields = scrape_fields(llm_text)
    if fields.is_empty():
        return None
    scores = AnalysisScores(
        **{key: fields.scores.get(key) for key in AnalysisScores.model_fields}
    )
    summary = " ".join(llm_text.split("\n")[:SUMMARY_LINES])[:summary_chars]
    analysis = Analysis(
        scores=scores,
        summary=summary,
        improvements=list(fields.improvements),
        strengths=list(fields.strengths),
    )
    return AnalysisOutcome(analysis=analysis, raw=llm_text, source="scrape")


def _reformatted(
    llm_text: str,
    complete: Complete,
    build: Callable[[str], List[Dict[str, str]]],
    source: AnalysisSource,
) -> Optional[AnalysisOutcome]:
    try:
        reply = complete(build(llm_text))
    except Exception as exc:  # noqa: BLE001
        logger.warning("Analysis reformat call failed source=%s: %s", source, exc)
        return None
    if not isinstance(reply, str) or not reply:
        return None
    return _outcome(extract_json(reply), reply, source) or _outcome(repair_json(reply), reply, source)


def fallback_outcome(llm_text: str, summary_chars: int = SUMMARY_CHARS) -> AnalysisOutcome:
    analysis = Analysis(
        scores=AnalysisScores(),
        summary=llm_text[:summary_chars],
        improvements=[PARSE_FAILURE_NOTE],
        strengths=[],
    )
    return AnalysisOutcome(analysis=analysis, raw=llm_text, source="fallback")


def analysis_attempts(llm_text: str, complete: Complete, summary_chars: int = SUMMARY_CHARS) -> List[Tuple[AnalysisSource, Attempt]]:
    """Ordered strategies; cheap local parsing first, model round-trips last."""

    return [
        ("extract", lambda: _direct(llm_text)),
        ("repair", lambda: _repaired(llm_text)),
        ("scrape", lambda: _scraped(llm_text, summary_chars)),
        ("reformat", lambda: _reformatted(llm_text, complete, strict_reformat_messages, "reformat")),
        ("reformat_terse", lambda: _reformatted(llm_text, complete, terse_reformat_messages, "reformat_terse")),
    ]


def finalize_analysis(llm_text: Optional[str], complete: Complete, *, summary_chars: int = SUMMARY_CHARS) -> AnalysisOutcome:
    """Coerce ``llm_text`` into a canonical analysis; never raises.

    The returned ``raw`` is the text the analysis was actually parsed from,
    which is the reformat reply when a reformat round-trip succeeded.
    """

    text = llm_text if isinstance(llm_text, str) else ""
    attempts = analysis_attempts(text, complete, summary_chars)
    outcome = first_success(attempt for _, attempt in attempts)
    if outcome is None:
        logger.warning("Analysis output unparseable; using fallback chars=%d", len(text))
        return fallback_outcome(text, summary_chars)
    return outcome


__all__ = ["analysis_attempts", "fallback_outcome", "finalize_analysis"]
