"""Run and persist the post-interview analysis for a session."""
from __future__ import annotations

import logging
import time
from typing import Optional

from config.settings import Settings, settings as default_settings
from interview_session.errors import InvalidInput
from interview_session.lifecycle import require_session
from interview_session.models import utcnow
from interview_session.store import SessionStore
from observability import log_event

from .finalizer import Complete, finalize_analysis
from .models import Analysis
from .prompts import analysis_messages

logger = logging.getLogger(__name__)


def run_analysis(
    session_id: str,
    *,
    store: SessionStore,
    complete: Complete,
    settings: Optional[Settings] = None,
) -> Analysis:
    """Score a session's transcript (or conversation log) and store the result.

    Re-running overwrites ``analysis``/``analysis_raw`` and re-stamps
    ``analysis_at``. Model failures never escape; the finalizer's fallback
    always yields a well-formed analysis.
    """

    cfg = settings or default_settings
    session = require_session(store, session_id)
    if not session.transcript and not session.context:
        raise InvalidInput("No transcript or context to analyze")

    started = time.perf_counter()
    messages = analysis_messages(session.transcript_text(), session.role_meta.resume_text)
    try:
        llm_text = complete(messages)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Analysis call failed session=%s: %s", session_id, exc)
        llm_text = ""
    outcome = finalize_analysis(llm_text, complete, summary_chars=cfg.SUMMARY_CHARS)

    now = utcnow()
    store.update(
        session_id,
        {"analysis": outcome.analysis, "analysis_raw": outcome.raw, "analysis_at": now},
    )
    log_event(
        "analysis",
        session_id,
        outcome=outcome.source,
        ms=int((time.perf_counter() - started) * 1000),
    )
    return outcome.analysis


__all__ = ["run_analysis"]
