"""Serializable session and candidate state for the interview engine."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from agents.types import KeywordCounts, Question, ScoreSource, budget_for, new_id
from graph.errors import CorruptSnapshotError

Phase = Literal["idle", "collecting_info", "asking_question", "waiting_answer", "completed"]
ContactField = Literal["name", "email", "phone"]
CandidateStatus = Literal["pending", "interviewing", "completed"]
SummarySource = Literal["remote", "fallback", "last_resort"]

ACTIVE_PHASES = frozenset({"asking_question", "waiting_answer"})
CONTACT_FIELDS: Tuple[str, ...] = ("name", "email", "phone")
ANONYMOUS_NAME = "Anonymous Candidate"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContactInfo(BaseModel):
    """Partial contact data handed over by the external extractor."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("name", "email", "phone", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    def missing_fields(self) -> List[str]:
        return [field for field in CONTACT_FIELDS if getattr(self, field) is None]


class Answer(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    question_id: str
    text: str
    submitted_at: datetime
    time_spent: int = Field(ge=0)
    score: int = Field(ge=0, le=10)
    feedback: str
    keywords: KeywordCounts = Field(default_factory=KeywordCounts)
    generated_by: ScoreSource = "fallback"
    auto_submitted: bool = False


class InterviewResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_score: int = Field(ge=0)
    summary: str
    summary_source: SummarySource
    end_time: datetime
    questions: Tuple[Question, ...] = ()
    answers: Tuple[Answer, ...] = ()


class Candidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: CandidateStatus = "pending"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    interview_result: Optional[InterviewResult] = None

    @classmethod
    def from_contact(cls, contact: Optional[ContactInfo], now: datetime) -> "Candidate":
        info = contact or ContactInfo()
        return cls(name=info.name, email=info.email, phone=info.phone, created_at=now, updated_at=now)

    @property
    def display_name(self) -> str:
        return self.name or ANONYMOUS_NAME

    def contact(self) -> ContactInfo:
        return ContactInfo(name=self.name, email=self.email, phone=self.phone)

    def with_contact(self, field: str, value: str, now: datetime) -> "Candidate":
        if field not in CONTACT_FIELDS:
            raise ValueError(f"unknown contact field '{field}'")
        cleaned = ContactInfo(**{field: value})
        return self.model_copy(update={field: getattr(cleaned, field), "updated_at": now})

    def with_status(self, status: CandidateStatus, now: datetime) -> "Candidate":
        return self.model_copy(update={"status": status, "updated_at": now})


class Session(BaseModel):
    """Immutable session value; transitions build new instances via ``evolve``."""

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(default_factory=new_id)
    candidate_id: Optional[str] = None
    phase: Phase = "idle"
    questions: Tuple[Question, ...] = ()
    answers: Tuple[Answer, ...] = ()
    current_index: int = 0
    remaining_seconds: int = 0
    timer_active: bool = False
    missing_fields: Tuple[ContactField, ...] = ()
    started_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "Session":
        if len(self.answers) > len(self.questions):
            raise ValueError("answers outnumber questions")
        if not 0 <= self.current_index <= len(self.questions):
            raise ValueError("current_index out of range")
        if self.remaining_seconds < 0:
            raise ValueError("remaining_seconds must be >= 0")
        if self.timer_active and self.phase not in ACTIVE_PHASES:
            raise ValueError(f"timer cannot run in phase '{self.phase}'")
        if self.phase in ACTIVE_PHASES and self.current_index >= len(self.questions):
            raise ValueError("active phase needs a current question")
        if self.phase in ACTIVE_PHASES:
            budget = budget_for(self.questions[self.current_index].difficulty)
            if self.remaining_seconds > budget:
                raise ValueError(f"remaining_seconds exceeds the {budget}s question budget")
        for idx, answer in enumerate(self.answers):
            if answer.question_id != self.questions[idx].id:
                raise ValueError(f"answer {idx} does not belong to question {idx}")
        return self

    def evolve(self, **changes: Any) -> "Session":
        """Return a validated copy with ``changes`` applied."""

        return Session(**{**dict(self), **changes})

    @property
    def is_active(self) -> bool:
        return self.phase in ACTIVE_PHASES

    @property
    def current_question(self) -> Optional[Question]:
        if self.is_active:
            return self.questions[self.current_index]
        return None

    @property
    def current_budget(self) -> int:
        question = self.current_question
        return budget_for(question.difficulty) if question else 0

    @property
    def total_score(self) -> int:
        return sum(answer.score for answer in self.answers)


def dump_snapshot(session: Session, candidate: Candidate) -> Dict[str, Any]:
    """Serialize the session/candidate pair to plain JSON-compatible data."""

    return {
        "session": session.model_dump(mode="json"),
        "candidate": candidate.model_dump(mode="json"),
    }


def load_snapshot(data: Mapping[str, Any]) -> Tuple[Session, Candidate]:
    """Rebuild the pair from ``dump_snapshot`` output.

    Raises:
        CorruptSnapshotError: If either part is missing or breaks an invariant.
    """

    if not isinstance(data, Mapping) or "session" not in data or "candidate" not in data:
        raise CorruptSnapshotError("snapshot must contain 'session' and 'candidate'")
    try:
        session = Session.model_validate(data["session"])
        candidate = Candidate.model_validate(data["candidate"])
    except ValidationError as exc:
        raise CorruptSnapshotError(str(exc)) from exc
    if session.candidate_id is not None and session.candidate_id != candidate.id:
        raise CorruptSnapshotError("snapshot candidate does not match session")
    return session, candidate


__all__ = [
    "ACTIVE_PHASES",
    "ANONYMOUS_NAME",
    "CONTACT_FIELDS",
    "Answer",
    "Candidate",
    "CandidateStatus",
    "ContactField",
    "ContactInfo",
    "InterviewResult",
    "Phase",
    "Session",
    "SummarySource",
    "dump_snapshot",
    "load_snapshot",
    "utcnow",
]
