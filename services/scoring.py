"""Session aggregation: total score, narrative summary and the stored result."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from agents.summarizer import Summarizer
from graph.state import Candidate, InterviewResult, Session, utcnow
from storage.candidates import CandidateStore

logger = logging.getLogger(__name__)


class SessionAggregator:
    """Turn a completed session into the candidate's final interview result."""

    def __init__(
        self,
        summarizer: Optional[Summarizer] = None,
        *,
        store: Optional[CandidateStore] = None,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._summarizer = summarizer or Summarizer()
        self._store = store
        self._now = now

    def finalize(self, session: Session, candidate: Candidate) -> Candidate:
        """Attach the final result to ``candidate``.

        A candidate that is already completed with a result is returned
        unchanged, so repeated completion events never recompute the score.
        """

        if candidate.status == "completed" and candidate.interview_result is not None:
            logger.info("finalize skipped candidate=%s already completed", candidate.id)
            return candidate

        total = session.total_score
        summary, source = self._summarizer.summarize(session.answers, candidate)
        end_time = self._now()
        result = InterviewResult(
            total_score=total,
            summary=summary,
            summary_source=source,
            end_time=end_time,
            questions=session.questions,
            answers=session.answers,
        )
        finished = candidate.model_copy(
            update={"status": "completed", "interview_result": result, "updated_at": end_time}
        )
        if self._store is not None:
            self._store.attach_result(candidate.id, result)
        logger.info(
            "finalized candidate=%s total=%d answers=%d summary_source=%s",
            candidate.id,
            total,
            len(session.answers),
            source,
        )
        return finished


__all__ = ["SessionAggregator"]
