import random

import pytest

from agents.qg.supplier import QuestionSupplier
from graph.errors import (
    AnswerValidationError,
    CorruptSnapshotError,
    InvalidTransitionError,
    SessionConflictError,
    SessionNotFoundError,
)
from graph.state import ContactInfo
from services.scoring import SessionAggregator
from services.sessions import InterviewSession, SessionRegistry
from services.timer import AUTO_SUBMIT_TEXT, ManualClock
from storage.candidates import SqliteCandidateStore

FULL_CONTACT = ContactInfo(name="Ada Lovelace", email="ada@example.com", phone="555-0100")
GOOD_ANSWER = "It uses components and manages state to build the UI"


def _handle(clock, **kwargs):
    options = dict(
        supplier=QuestionSupplier(rng=random.Random(5)),
        clock=clock,
        store=SqliteCandidateStore(),
        total_questions=6,
    )
    options.update(kwargs)
    return InterviewSession(**options)


def test_full_flow_completes_and_persists(clock):
    handle = _handle(clock)
    state = handle.intake(FULL_CONTACT)

    assert state.phase == "asking_question"
    assert len(state.questions) == 6
    assert state.remaining_seconds == 20
    assert handle.candidate.status == "interviewing"
    store = SqliteCandidateStore()
    assert store.get(handle.candidate.id).status == "interviewing"

    for _ in range(6):
        handle.submit(GOOD_ANSWER)

    state = handle.state
    assert state.phase == "completed"
    assert len(state.answers) == 6
    candidate = handle.candidate
    assert candidate.status == "completed"
    assert candidate.interview_result.total_score == sum(a.score for a in state.answers)
    assert store.get(candidate.id).interview_result.total_score == candidate.interview_result.total_score
    assert clock.pending() == 0
    assert {event["span"] for event in handle.events} >= {"question_supply", "evaluate", "finalize"}


def test_missing_contact_fields_collected_in_order(clock):
    handle = _handle(clock)
    state = handle.intake({"name": "Grace"})
    assert state.phase == "collecting_info"
    assert state.missing_fields == ("email", "phone")

    state = handle.provide_field("email", "grace@example.com")
    assert state.phase == "collecting_info"
    assert state.missing_fields == ("phone",)

    state = handle.provide_field("phone", "555-0142")
    assert state.phase == "asking_question"
    assert SqliteCandidateStore().get(handle.candidate.id).phone == "555-0142"


def test_provide_field_rejects_fields_not_missing(clock):
    handle = _handle(clock)
    handle.intake({"name": "Grace"})
    with pytest.raises(ValueError):
        handle.provide_field("name", "Someone Else")
    with pytest.raises(ValueError):
        handle.provide_field("email", "   ")


def test_skip_collection_starts_questions(clock):
    handle = _handle(clock)
    handle.intake(None)
    state = handle.skip_collection()
    assert state.phase == "asking_question"
    assert handle.candidate.display_name == "Anonymous Candidate"


def test_blank_answer_rejected_without_state_change(clock):
    handle = _handle(clock)
    handle.intake(FULL_CONTACT)
    clock.advance(3)
    before = handle.state

    with pytest.raises(AnswerValidationError):
        handle.submit("   \n\t")

    assert handle.state is before
    assert handle.state.answers == ()


def test_submit_while_idle_is_invalid(clock):
    handle = _handle(clock)
    with pytest.raises(InvalidTransitionError):
        handle.submit(GOOD_ANSWER)


def test_ticks_count_down_and_time_spent_recorded(clock):
    handle = _handle(clock)
    handle.intake(FULL_CONTACT)

    clock.advance(7)
    state = handle.state
    assert state.phase == "waiting_answer"
    assert state.remaining_seconds == 13

    answer = handle.submit(GOOD_ANSWER)
    assert answer.time_spent == 7
    assert not answer.auto_submitted
    assert handle.state.phase == "asking_question"
    assert handle.state.remaining_seconds == 20


def test_expiry_auto_submits_placeholder(clock):
    handle = _handle(clock)
    handle.intake(FULL_CONTACT)
    first_question = handle.state.questions[0]

    clock.advance(20)

    state = handle.state
    assert len(state.answers) == 1
    answer = state.answers[0]
    assert answer.question_id == first_question.id
    assert answer.text == AUTO_SUBMIT_TEXT
    assert answer.auto_submitted
    assert answer.time_spent == 20
    assert state.current_index == 1
    assert state.phase == "asking_question"
    assert state.remaining_seconds == 20


def test_manual_ticks_without_scheduler(clock):
    handle = _handle(clock, auto_tick=False)
    handle.intake(FULL_CONTACT)
    assert clock.pending() == 0

    for _ in range(19):
        assert handle.tick() is None
    answer = handle.tick()
    assert answer is not None and answer.auto_submitted
    assert handle.state.current_index == 1


def test_late_tick_after_submit_is_discarded(clock):
    handle = _handle(clock)
    handle.intake(FULL_CONTACT)
    clock.advance(3)
    stale_generation = handle.timer.generation

    handle.submit(GOOD_ANSWER)
    assert handle.timer.generation != stale_generation
    assert clock.pending() == 1

    # a tick stamped with the old arm cycle changes nothing
    handle._scheduled_tick(stale_generation)
    assert handle.state.remaining_seconds == 20

    clock.advance(1)
    assert handle.state.remaining_seconds == 19


def test_expiry_on_last_question_completes_once(clock):
    finalize_calls = []

    class CountingAggregator(SessionAggregator):
        def finalize(self, session, candidate):
            finalize_calls.append(session.session_id)
            return super().finalize(session, candidate)

    handle = _handle(clock, total_questions=1, aggregator=CountingAggregator(now=clock.now))
    handle.intake(FULL_CONTACT)
    clock.advance(20)

    assert handle.state.phase == "completed"
    assert handle.candidate.interview_result.answers[0].auto_submitted
    clock.advance(60)
    assert handle.tick() is None
    assert finalize_calls == [handle.session_id]


def test_reset_cancels_timer_and_returns_to_idle(clock):
    handle = _handle(clock)
    handle.intake(FULL_CONTACT)
    session_id = handle.session_id
    clock.advance(2)

    state = handle.reset()
    assert state.phase == "idle"
    assert state.session_id == session_id
    assert handle.candidate is None
    assert clock.pending() == 0

    clock.advance(30)
    assert handle.state.phase == "idle"
    with pytest.raises(InvalidTransitionError):
        handle.snapshot()


def test_reset_mid_interview_logs_abandoned_candidate(clock, monkeypatch):
    events = []
    monkeypatch.setattr("services.sessions.log_event", lambda kind, session_id, **fields: events.append((kind, fields)))

    handle = _handle(clock)
    handle.intake(FULL_CONTACT)
    candidate_id = handle.candidate.id
    handle.reset()
    handle.reset()

    resets = [fields for kind, fields in events if kind == "reset"]
    assert resets[0]["abandoned"] == candidate_id
    assert resets[1]["abandoned"] is None
    assert SqliteCandidateStore().get(candidate_id).status == "interviewing"


def test_snapshot_restore_resumes_countdown(clock):
    handle = _handle(clock, checkpoints=True)
    handle.intake(FULL_CONTACT)
    handle.submit(GOOD_ANSWER)
    clock.advance(5)
    snapshot = handle.snapshot()
    handle.close()

    other_clock = ManualClock()
    restored = InterviewSession.restore(snapshot, clock=other_clock, store=SqliteCandidateStore())
    assert restored.state == handle.state
    assert restored.candidate == handle.candidate
    assert restored.timer.remaining() == 15

    other_clock.advance(15)
    assert len(restored.state.answers) == 2
    assert restored.state.answers[-1].auto_submitted


def test_restore_rejects_remaining_beyond_budget(clock):
    handle = _handle(clock, total_questions=3, auto_tick=False)
    handle.intake(FULL_CONTACT)
    snapshot = handle.snapshot()
    handle.close()

    snapshot["session"]["remaining_seconds"] = 500
    with pytest.raises(CorruptSnapshotError):
        InterviewSession.restore(snapshot, clock=clock, auto_tick=False)

    snapshot["session"]["remaining_seconds"] = 20
    restored = InterviewSession.restore(snapshot, clock=clock, auto_tick=False)
    for _ in range(19):
        assert restored.tick() is None
    fired = restored.tick()
    assert fired.auto_submitted
    assert fired.time_spent == 20


def test_restore_of_completed_without_result_finalizes(clock):
    handle = _handle(clock, total_questions=1)
    handle.intake(FULL_CONTACT)
    handle.submit(GOOD_ANSWER)
    snapshot = handle.snapshot()
    snapshot["candidate"]["interview_result"] = None
    snapshot["candidate"]["status"] = "interviewing"

    restored = InterviewSession.restore(snapshot, clock=clock)
    assert restored.candidate.status == "completed"
    assert restored.candidate.interview_result.total_score == handle.candidate.interview_result.total_score


def test_registry_refuses_second_active_session_for_candidate(clock):
    registry = SessionRegistry()
    handle = _handle(clock, auto_tick=False)
    handle.intake(FULL_CONTACT)
    registry.add(handle)
    assert registry.get(handle.session_id) is handle

    twin = InterviewSession.restore(handle.snapshot(), clock=clock, auto_tick=False)
    with pytest.raises(SessionConflictError):
        registry.add(twin)

    for _ in range(6):
        handle.submit(GOOD_ANSWER)
    assert registry.active_for(handle.candidate.id) is None


def test_registry_unknown_session():
    registry = SessionRegistry()
    with pytest.raises(SessionNotFoundError):
        registry.get("missing")
    with pytest.raises(KeyError):
        registry.get("missing")
    assert registry.remove("missing") is None
