"""Session state, phase transitions and snapshot checkpoints."""
from .errors import (
    AnswerValidationError,
    CorruptSnapshotError,
    InterviewError,
    InvalidTransitionError,
    RemoteServiceError,
    SessionConflictError,
    SessionNotFoundError,
)
from .state import Answer, Candidate, ContactInfo, InterviewResult, Session, dump_snapshot, load_snapshot

__all__ = [
    "Answer",
    "AnswerValidationError",
    "Candidate",
    "ContactInfo",
    "CorruptSnapshotError",
    "InterviewError",
    "InterviewResult",
    "InvalidTransitionError",
    "RemoteServiceError",
    "Session",
    "SessionConflictError",
    "SessionNotFoundError",
    "dump_snapshot",
    "load_snapshot",
]
