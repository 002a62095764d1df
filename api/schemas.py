"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from agents.types import Difficulty, Provenance, Topic
from graph.state import ContactField, Phase, SummarySource


class StartReq(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    total_questions: Optional[int] = Field(default=None, ge=1, le=30)


class SessionReq(BaseModel):
    session_id: str


class FieldReq(SessionReq):
    field: ContactField
    value: str = Field(min_length=1)


class AnswerReq(SessionReq):
    text: str


class TickReq(SessionReq):
    seconds: int = Field(default=1, ge=1, le=600)


class RestoreReq(BaseModel):
    """Either an inline snapshot or the id of a session with a stored checkpoint."""

    snapshot: Optional[Dict[str, Any]] = None
    session_id: Optional[str] = None

    @model_validator(mode="after")
    def _one_source(self) -> "RestoreReq":
        if (self.snapshot is None) == (self.session_id is None):
            raise ValueError("provide exactly one of snapshot or session_id")
        return self


class QuestionView(BaseModel):
    id: str
    text: str
    difficulty: Difficulty
    topic: Topic
    generated_by: Provenance


class AnswerView(BaseModel):
    question_id: str
    text: str
    score: int
    feedback: str
    time_spent: int
    generated_by: str
    auto_submitted: bool


class ResultView(BaseModel):
    total_score: int
    summary: str
    summary_source: SummarySource
    end_time: datetime
    answers: List[AnswerView] = Field(default_factory=list)


class ApiResp(BaseModel):
    session_id: str
    candidate_id: Optional[str] = None
    candidate_name: Optional[str] = None
    phase: Phase
    missing_fields: List[ContactField] = Field(default_factory=list)
    question: Optional[QuestionView] = None
    question_number: int = 0
    total_questions: int = 0
    remaining_seconds: int = 0
    timer_active: bool = False
    last_answer: Optional[AnswerView] = None
    result: Optional[ResultView] = None
    event_log: List[Dict[str, Any]] = Field(default_factory=list)


class CandidateSummary(BaseModel):
    candidate_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: str
    total_score: Optional[int] = None
    summary: Optional[str] = None
    created_at: datetime


SortKey = Literal["score", "name", "created_at"]
SortOrder = Literal["asc", "desc"]
