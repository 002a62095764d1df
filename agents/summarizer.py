"""Narrative interview summary with canned fallbacks."""
from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Tuple

from agents import content_service
from graph.state import Answer, Candidate, SummarySource
from services.cascade import Outcome, first_success

logger = logging.getLogger(__name__)

RemoteSummarizer = Callable[[Sequence[Answer], Candidate], str]

LAST_RESORT_SUMMARY = "Interview completed successfully."

SUMMARY_BANDS = (
    (
        8.0,
        "{name} demonstrated excellent technical knowledge and problem-solving skills throughout the interview. "
        "They provided detailed, well-structured answers that showed deep understanding of React, JavaScript, "
        "and web development concepts. Strong candidate for full-stack development roles with immediate "
        "contribution potential.",
    ),
    (
        6.0,
        "{name} showed good understanding of fundamental concepts with some areas for improvement. "
        "Their answers were generally clear and demonstrated practical knowledge. With some additional "
        "experience, they would be a solid contributor to development teams.",
    ),
    (
        4.0,
        "{name} has basic understanding of the topics but needs more hands-on experience. Their answers "
        "lacked depth in some technical areas and would benefit from further study. May need mentorship and "
        "training before taking on complex development tasks.",
    ),
)
NEEDS_IMPROVEMENT_SUMMARY = (
    "{name} needs significant improvement in technical knowledge and problem-solving skills. Their answers "
    "were often brief and lacked understanding of key concepts. Would benefit from foundational training "
    "before being considered for development roles."
)


def average_score(answers: Sequence[Answer]) -> float:
    if not answers:
        return 0.0
    return sum(answer.score for answer in answers) / len(answers)


def banded_summary(answers: Sequence[Answer], candidate: Candidate) -> str:
    avg = average_score(answers)
    template = NEEDS_IMPROVEMENT_SUMMARY
    for threshold, text in SUMMARY_BANDS:
        if avg >= threshold:
            template = text
            break
    return template.format(name=candidate.display_name)


def _non_blank(source: str, text: str) -> Outcome[str]:
    if isinstance(text, str) and text.strip():
        return Outcome.success(source, text.strip())
    return Outcome.failure(source, "empty summary")


def _remote_summary(answers: Sequence[Answer], candidate: Candidate) -> str:
    meta = {"id": candidate.id, "name": candidate.display_name, "email": candidate.email}
    return content_service.generate_summary(answers, meta)


class Summarizer:
    def __init__(
        self,
        remote: Optional[RemoteSummarizer] = None,
        *,
        fallback: Callable[[Sequence[Answer], Candidate], str] = banded_summary,
    ) -> None:
        self._remote = remote or _remote_summary
        self._fallback = fallback

    def summarize(self, answers: Sequence[Answer], candidate: Candidate) -> Tuple[str, SummarySource]:
        outcome = first_success(
            [
                ("remote", lambda: _non_blank("remote", self._remote(answers, candidate))),
                ("fallback", lambda: self._fallback(answers, candidate)),
                ("last_resort", lambda: LAST_RESORT_SUMMARY),
            ]
        )
        if outcome.source == "last_resort":
            logger.warning("summary degraded to last-resort notice candidate=%s", candidate.id)
        return outcome.value, outcome.source


__all__ = [
    "LAST_RESORT_SUMMARY",
    "NEEDS_IMPROVEMENT_SUMMARY",
    "SUMMARY_BANDS",
    "Summarizer",
    "average_score",
    "banded_summary",
]
