"""Answer scoring cascade: remote evaluation first, keyword scoring as fallback."""
from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Mapping, Optional

from agents import content_service
from agents.types import KeywordCounts, Question, ScoreResult
from config.settings import settings
from services.cascade import first_success

logger = logging.getLogger(__name__)

RemoteEvaluator = Callable[[str, Question], ScoreResult]

TIER_POINTS: Dict[str, int] = {"high": 3, "medium": 2, "low": 1}

KEYWORD_WEIGHTS: Dict[str, Dict[str, List[str]]] = {
    "react": {
        "high": ["component", "state", "props", "jsx", "hook", "virtual dom", "lifecycle", "context"],
        "medium": ["render", "update", "performance", "optimization", "ref", "portal", "suspense"],
        "low": ["function", "class", "element", "attribute", "event", "handler"],
    },
    "javascript": {
        "high": ["closure", "prototype", "inheritance", "asynchronous", "promise", "callback", "scope"],
        "medium": ["hoisting", "event loop", "garbage collection", "module", "bind", "apply"],
        "low": ["variable", "function", "object", "array", "string", "number"],
    },
    "general": {
        "high": ["architecture", "scalability", "performance", "security", "optimization", "efficiency"],
        "medium": ["design", "pattern", "structure", "implementation", "integration", "deployment"],
        "low": ["system", "application", "service", "component", "feature", "functionality"],
    },
}

MAX_LENGTH_BONUS = 2.0
MAX_SCORE = 10

TOO_BRIEF_FEEDBACK = "Answer is too brief. Please provide more detailed explanation."

FEEDBACK_BANDS = (
    (8.0, "Excellent answer! Demonstrates strong understanding of the topic."),
    (6.0, "Good answer with solid understanding. Consider elaborating on key concepts."),
    (4.0, "Decent answer, but could benefit from more specific details and examples."),
)
NEEDS_DEPTH_FEEDBACK = "Answer needs more depth and specific technical details."


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def feedback_for(total: float) -> str:
    for threshold, text in FEEDBACK_BANDS:
        if total >= threshold:
            return text
    return NEEDS_DEPTH_FEEDBACK


def count_keywords(answer_text: str, table: Mapping[str, List[str]]) -> KeywordCounts:
    """Count distinct keywords per tier found as case-insensitive substrings."""

    haystack = answer_text.lower()
    counts = {tier: sum(1 for keyword in set(table.get(tier, [])) if keyword.lower() in haystack) for tier in TIER_POINTS}
    return KeywordCounts(**counts)


def score_locally(
    answer_text: str,
    question: Question,
    keyword_table: Optional[Mapping[str, Mapping[str, List[str]]]] = None,
) -> ScoreResult:
    """Deterministic keyword and length scoring."""

    if len(answer_text.strip()) < settings.MIN_ANSWER_CHARS:
        return ScoreResult(score=settings.BRIEF_ANSWER_SCORE, feedback=TOO_BRIEF_FEEDBACK, generated_by="fallback")

    tables = keyword_table or KEYWORD_WEIGHTS
    table = tables.get(question.topic) or tables.get("general") or KEYWORD_WEIGHTS["general"]
    keywords = count_keywords(answer_text, table)
    base = sum(getattr(keywords, tier) * points for tier, points in TIER_POINTS.items())
    length_bonus = min(len(answer_text) / 100, MAX_LENGTH_BONUS)
    total = min(base + length_bonus, float(MAX_SCORE))
    return ScoreResult(
        score=_round_half_up(total),
        feedback=feedback_for(total),
        keywords=keywords,
        generated_by="fallback",
    )


class AnswerEvaluator:
    """Score an answer through the remote service, falling back to local scoring."""

    def __init__(
        self,
        remote: Optional[RemoteEvaluator] = None,
        *,
        keyword_table: Optional[Mapping[str, Mapping[str, List[str]]]] = None,
    ) -> None:
        self._remote = remote or content_service.evaluate_answer
        self._keyword_table = keyword_table

    def evaluate(self, answer_text: str, question: Question) -> ScoreResult:
        outcome = first_success(
            [
                ("remote", lambda: self._remote(answer_text, question)),
                ("local", lambda: score_locally(answer_text, question, self._keyword_table)),
            ]
        )
        result: ScoreResult = outcome.value
        logger.info(
            "evaluated answer question=%s source=%s score=%d",
            question.id,
            outcome.source,
            result.score,
        )
        return result


__all__ = [
    "AnswerEvaluator",
    "FEEDBACK_BANDS",
    "KEYWORD_WEIGHTS",
    "NEEDS_DEPTH_FEEDBACK",
    "TIER_POINTS",
    "TOO_BRIEF_FEEDBACK",
    "count_keywords",
    "feedback_for",
    "score_locally",
]
