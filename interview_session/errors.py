from __future__ import annotations  # Interview error taxonomy


class InterviewError(Exception):  # Base error for structural failures surfaced to callers
    code = "interview_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(InterviewError):  # Malformed identifier or missing field
    code = "invalid_input"


class NotFound(InterviewError):  # Referenced session does not exist
    code = "not_found"


class InvalidState(InterviewError):  # Action not allowed in the session's current status
    code = "invalid_state"


class AccessDenied(InterviewError):  # Session belongs to another user
    code = "access_denied"


class StoreError(RuntimeError):  # Persistence backend failure
    pass


__all__ = ["InterviewError", "InvalidInput", "NotFound", "InvalidState", "AccessDenied", "StoreError"]
