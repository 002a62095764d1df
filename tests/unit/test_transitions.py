from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from agents.types import Question
from graph import transitions
from graph.errors import InvalidTransitionError
from graph.state import Answer, Session

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _questions():
    return [
        Question(text="Easy one", difficulty="easy", topic="react", generated_by="template"),
        Question(text="Hard one", difficulty="hard", topic="general", generated_by="template"),
    ]


def _answer(question, **overrides):
    data = dict(question_id=question.id, text="answer", submitted_at=NOW, time_spent=3, score=4, feedback="ok")
    data.update(overrides)
    return Answer(**data)


def test_contact_fields_requested_in_fixed_order():
    session = transitions.request_contact_fields(Session(), ["phone", "name"])
    assert session.phase == "collecting_info"
    assert session.missing_fields == ("name", "phone")

    session = transitions.clear_missing_field(session, "name")
    assert session.missing_fields == ("phone",)


def test_begin_questions_arms_first_budget():
    session = transitions.begin_questions(Session(), _questions(), now=NOW)
    assert session.phase == "asking_question"
    assert session.current_index == 0
    assert session.remaining_seconds == 20
    assert session.timer_active
    assert session.started_at == NOW


def test_begin_questions_rejects_empty_list():
    with pytest.raises(ValueError):
        transitions.begin_questions(Session(), [])


def test_tick_moves_to_waiting_and_floors_at_zero():
    session = transitions.begin_questions(Session(), _questions())
    session = transitions.tick(session)
    assert session.phase == "waiting_answer"
    assert session.remaining_seconds == 19

    drained = session.evolve(remaining_seconds=0)
    assert transitions.tick(drained).remaining_seconds == 0


def test_tick_without_timer_is_noop():
    session = transitions.disarm(transitions.begin_questions(Session(), _questions()))
    assert transitions.tick(session) is session


def test_record_answer_advances_then_completes():
    questions = _questions()
    session = transitions.begin_questions(Session(), questions)

    session = transitions.record_answer(session, _answer(questions[0]))
    assert session.phase == "asking_question"
    assert session.current_index == 1
    assert session.remaining_seconds == 120
    assert session.timer_active

    session = transitions.record_answer(session, _answer(questions[1], score=6))
    assert session.phase == "completed"
    assert not session.timer_active
    assert session.current_question is None
    assert session.total_score == 10


def test_record_answer_rejects_foreign_question():
    questions = _questions()
    session = transitions.begin_questions(Session(), questions)
    with pytest.raises(ValueError):
        transitions.record_answer(session, _answer(questions[1]))


@pytest.mark.parametrize(
    "action",
    [
        lambda s: transitions.tick(s),
        lambda s: transitions.disarm(s),
        lambda s: transitions.clear_missing_field(s, "name"),
    ],
)
def test_invalid_transitions_from_idle(action):
    with pytest.raises(InvalidTransitionError):
        action(Session())


def test_submit_while_idle_is_invalid():
    question = _questions()[0]
    with pytest.raises(InvalidTransitionError) as info:
        transitions.record_answer(Session(), _answer(question))
    assert info.value.phase == "idle"


def test_cannot_restart_a_completed_session():
    questions = _questions()[:1]
    session = transitions.begin_questions(Session(), questions)
    session = transitions.record_answer(session, _answer(questions[0]))
    with pytest.raises(InvalidTransitionError):
        transitions.begin_questions(session, questions)


def test_reset_returns_fresh_idle_session_with_same_id():
    session = transitions.begin_questions(Session(), _questions())
    fresh = transitions.reset(session)
    assert fresh.phase == "idle"
    assert fresh.session_id == session.session_id
    assert fresh.questions == () and fresh.answers == ()


def test_session_invariants_enforced():
    question = _questions()[0]
    with pytest.raises(ValidationError):
        Session(answers=(_answer(question),))
    with pytest.raises(ValidationError):
        Session(remaining_seconds=-1)
    with pytest.raises(ValidationError):
        Session(timer_active=True)
