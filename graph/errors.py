"""Error taxonomy for the interview session engine."""
from __future__ import annotations


class InterviewError(Exception):
    """Base class for engine errors."""


class RemoteServiceError(InterviewError):
    """A remote generation, evaluation or summary call failed or timed out."""


class AnswerValidationError(InterviewError, ValueError):
    """Submitted answer text was empty or whitespace."""


class InvalidTransitionError(InterviewError):
    """Requested transition is not allowed from the current phase."""

    def __init__(self, action: str, phase: str) -> None:
        super().__init__(f"cannot {action} while phase is '{phase}'")
        self.action = action
        self.phase = phase


class CorruptSnapshotError(InterviewError, ValueError):
    """Serialized session or candidate violates the model invariants."""


class SessionNotFoundError(InterviewError, KeyError):
    pass


class SessionConflictError(InterviewError):
    """Candidate already has an active session."""


__all__ = [
    "InterviewError",
    "RemoteServiceError",
    "AnswerValidationError",
    "InvalidTransitionError",
    "CorruptSnapshotError",
    "SessionNotFoundError",
    "SessionConflictError",
]
