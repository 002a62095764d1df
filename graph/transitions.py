"""Pure phase transitions for an interview session.

Every function takes a ``Session`` and returns a new one; nothing here arms
timers, calls remote services or logs. The session driver in
``services.sessions`` performs those side effects around these calls.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from agents.types import Question, budget_for
from graph.errors import InvalidTransitionError
from graph.state import CONTACT_FIELDS, Answer, Session, utcnow

_START_PHASES = frozenset({"idle", "collecting_info"})


def _require(session: Session, allowed: Iterable[str], action: str) -> None:
    if session.phase not in allowed:
        raise InvalidTransitionError(action, session.phase)


def request_contact_fields(session: Session, missing: Sequence[str]) -> Session:
    """idle -> collecting_info when intake left contact fields empty."""

    _require(session, {"idle"}, "collect contact fields")
    ordered = tuple(field for field in CONTACT_FIELDS if field in set(missing))
    if not ordered:
        raise ValueError("no missing fields to collect")
    return session.evolve(phase="collecting_info", missing_fields=ordered)


def clear_missing_field(session: Session, field: str) -> Session:
    _require(session, {"collecting_info"}, "clear a contact field")
    remaining = tuple(item for item in session.missing_fields if item != field)
    return session.evolve(missing_fields=remaining)


def begin_questions(session: Session, questions: Sequence[Question], *, now: Optional[datetime] = None) -> Session:
    """Enter the first active phase with a full question list."""

    _require(session, _START_PHASES, "start questions")
    if not questions:
        raise ValueError("cannot start a session without questions")
    first = questions[0]
    return session.evolve(
        phase="asking_question",
        questions=tuple(questions),
        answers=(),
        current_index=0,
        remaining_seconds=budget_for(first.difficulty),
        timer_active=True,
        missing_fields=(),
        started_at=session.started_at or now or utcnow(),
    )


def tick(session: Session) -> Session:
    """One logical second elapsed on the armed timer."""

    _require(session, {"asking_question", "waiting_answer"}, "tick")
    if not session.timer_active:
        return session
    return session.evolve(phase="waiting_answer", remaining_seconds=max(0, session.remaining_seconds - 1))


def disarm(session: Session) -> Session:
    _require(session, {"asking_question", "waiting_answer"}, "stop the timer")
    return session.evolve(timer_active=False)


def record_answer(session: Session, answer: Answer) -> Session:
    """Append ``answer`` for the current question, then advance or complete."""

    _require(session, {"asking_question", "waiting_answer"}, "submit an answer")
    current = session.questions[session.current_index]
    if answer.question_id != current.id:
        raise ValueError("answer does not match the current question")
    answers = session.answers + (answer,)
    next_index = session.current_index + 1
    if next_index < len(session.questions):
        upcoming = session.questions[next_index]
        return session.evolve(
            phase="asking_question",
            answers=answers,
            current_index=next_index,
            remaining_seconds=budget_for(upcoming.difficulty),
            timer_active=True,
        )
    return session.evolve(
        phase="completed",
        answers=answers,
        current_index=len(session.questions),
        remaining_seconds=0,
        timer_active=False,
    )


def reset(session: Session) -> Session:
    """Back to a fresh idle session under the same id; allowed from every phase."""

    return Session(session_id=session.session_id)


__all__ = [
    "begin_questions",
    "clear_missing_field",
    "disarm",
    "record_answer",
    "request_contact_fields",
    "reset",
    "tick",
]
