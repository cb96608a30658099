from __future__ import annotations  # Prompt builders for the interviewer

from textwrap import dedent
from typing import Dict, List, Optional, Sequence

from .models import ContextEntry, InterviewSettings, RoleMeta, as_messages

COMPLETION_MARKER = "That concludes our interview."
GENERIC_FOLLOW_UP = "Could you expand on that with a concrete example from your experience?"
FREEFORM_FALLBACK = "Could you tell me more about that?"
DEFAULT_QUESTIONS = (
    "Explain a commonly used data structure and where you would use it.",
    "Describe a time you debugged a hard problem. How did you approach it?",
)


def system_prompt(role: RoleMeta, settings: InterviewSettings) -> str:
    shape: List[str] = []
    if settings.num_questions:
        shape.append(f"{settings.num_questions} questions")
    if settings.difficulty:
        shape.append(f"difficulty={settings.difficulty}")
    if settings.mode:
        shape.append(f"mode={settings.mode}")
    return "\n".join(
        [
            f"You are an expert technical interviewer for the role of {role.position} at {role.company}.",
            f"Job description: {role.description}",
            f"Requirements: {role.requirements or 'None specified'}.",
            f"Candidate background: {role.resume_text or 'No resume provided'}.",
            f"Interview settings: {', '.join(shape)}",
            "",
            "Ask one question at a time, wait for the candidate's answer, and allow clarifications.",
            "When ready to move on, ask the next question. If you decide the interview is complete, "
            f'say "{COMPLETION_MARKER}"',
        ]
    )


def question_messages(system: str, role: RoleMeta, count: int, difficulty: Optional[str]) -> List[Dict[str, str]]:
    task = dedent(
        f"""
        Generate {count} {difficulty or 'medium'}-difficulty interview questions for the role {role.position}
        at {role.company}, tailored to the job description and requirements below.

        Return JSON ONLY in this exact format:
        {{"questions": ["First question text", "Second question text"]}}

        Do not include explanations, numbering, commentary, or other fields.
        """
    ).strip()
    details = (
        f"Job description:\n{role.description}\n\n"
        f"Requirements:\n{role.requirements or 'None specified'}\n\n"
        f"Candidate background:\n{role.resume_text or 'No resume provided'}"
    )
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": f"{task}\n\n{details}"},
    ]


def clarification_messages(system: str, last_question: Optional[str], utterance: str) -> List[Dict[str, str]]:
    question = last_question or "the previous question"
    instruction = (
        f'The candidate asked for clarification about: "{question}". '
        f'Their message: "{utterance}". '
        "In 1-2 sentences, clarify or restate the question without moving on and without answering it."
    )
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": instruction},
    ]


DECISION_INSTRUCTION = dedent(
    """
    Decide how the interview should continue after the candidate's last answer.
    Reply with exactly one JSON object and nothing else:
    {"action": "ask", "text": "<one-sentence follow-up question>"} to probe the same topic,
    {"action": "proceed"} to move to the next prepared question, or
    {"action": "end"} if the interview should stop now.
    """
).strip()


def decision_messages(system: str, recent: Sequence[ContextEntry]) -> List[Dict[str, str]]:
    messages = [{"role": "system", "content": system}]
    messages.extend(item for item in as_messages(recent) if item["role"] != "system")
    messages.append({"role": "user", "content": DECISION_INSTRUCTION})
    return messages


__all__ = [
    "COMPLETION_MARKER",
    "DECISION_INSTRUCTION",
    "DEFAULT_QUESTIONS",
    "FREEFORM_FALLBACK",
    "GENERIC_FOLLOW_UP",
    "clarification_messages",
    "decision_messages",
    "question_messages",
    "system_prompt",
]
