from __future__ import annotations  # Prompt builders for interview analysis

from textwrap import dedent
from typing import Dict, List

ANALYST_SYSTEM = "You are an expert technical interviewer and coach."
STRICT_FORMATTER_SYSTEM = "You are a strict JSON formatter."
TERSE_FORMATTER_SYSTEM = "You are a JSON extraction assistant."

_SCHEMA = (
    '{ "scores": { "communication": <int|null>, "technical": <int|null>, "structure": <int|null>, '
    '"confidence": <int|null>, "nonverbal": <int|null|"N/A"> }, "summary": "<string>", '
    '"improvements": ["string", ...], "strengths": ["string", ...] }'
)


def analysis_messages(transcript: str, resume_text: str = "") -> List[Dict[str, str]]:
    resume_block = f"Candidate resume summary:\n{resume_text}\n\n" if resume_text else ""
    task = dedent(
        """
        Given the following interview transcript, produce:
        1) Integer scores 1-5 for: Communication (clarity), Technical Accuracy, Problem Solving / Depth,
           Structure (how answers are organized), Confidence / Presence, and Nonverbal (if video was used,
           otherwise N/A).
        2) A concise summary paragraph (2-3 sentences).
        3) Four actionable improvements, most important first.
        4) Three strengths observed.

        Return JSON ONLY with keys: scores, summary, improvements, strengths.
        """
    ).strip()
    content = f"{task}\n\n{resume_block}Transcript:\n{transcript}"
    return [
        {"role": "system", "content": ANALYST_SYSTEM},
        {"role": "user", "content": content},
    ]


def strict_reformat_messages(llm_text: str) -> List[Dict[str, str]]:
    content = dedent(
        f"""
        The previous output may contain commentary or broken formatting. Return a valid JSON object only,
        with this schema:

        {_SCHEMA}

        If a field cannot be determined use null (or "N/A" for nonverbal). Do not add other fields or text.
        Original output:
        ---
        {{original}}
        ---
        Return the JSON only.
        """
    ).strip()
    return [
        {"role": "system", "content": STRICT_FORMATTER_SYSTEM},
        {"role": "user", "content": content.replace("{original}", llm_text)},
    ]


def terse_reformat_messages(llm_text: str) -> List[Dict[str, str]]:
    content = (
        "Output valid JSON only, no markdown and no commentary. Extract these fields from the input, "
        f"using null where missing:\n{_SCHEMA}\n---\n{llm_text}\n---"
    )
    return [
        {"role": "system", "content": TERSE_FORMATTER_SYSTEM},
        {"role": "user", "content": content},
    ]


__all__ = ["analysis_messages", "strict_reformat_messages", "terse_reformat_messages"]
