"""Shared type definitions for question supply and answer scoring."""
from typing import Dict, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

Difficulty = Literal["easy", "medium", "hard"]
Topic = Literal["react", "javascript", "general"]
Provenance = Literal["remote", "template", "fallback"]
ScoreSource = Literal["remote", "fallback"]

DIFFICULTY_ORDER: tuple = ("easy", "medium", "hard")

# seconds per question, fixed by difficulty
QUESTION_TIMERS: Dict[str, int] = {
    "easy": 20,
    "medium": 60,
    "hard": 120,
}

TIER_TOPICS: Dict[str, str] = {
    "easy": "react",
    "medium": "javascript",
    "hard": "general",
}


def new_id() -> str:
    return uuid4().hex


def budget_for(difficulty: str) -> int:
    return QUESTION_TIMERS[difficulty]


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    text: str = Field(min_length=1)
    difficulty: Difficulty
    topic: Topic
    generated_by: Provenance


class KeywordCounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    high: int = Field(default=0, ge=0)
    medium: int = Field(default=0, ge=0)
    low: int = Field(default=0, ge=0)


class ScoreResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=10)
    feedback: str
    keywords: KeywordCounts = Field(default_factory=KeywordCounts)
    generated_by: ScoreSource = "fallback"


class Slot(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    difficulty: Difficulty
    topic: Topic
