"""Interview session driver: one live session handle plus a registry of handles.

``InterviewSession`` owns the session and candidate values and runs every
mutation under a single ``RLock``. The pure functions in ``graph.transitions``
decide the next state; this module performs the side effects around them:
question supply, timer arming and scheduling, answer evaluation, finalize,
candidate persistence, checkpoints and event logging.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from agents.qg.supplier import QuestionSupplier
from agents.response_evaluator import AnswerEvaluator
from config.settings import settings
from graph import transitions
from graph.checkpointer import delete_checkpoint, save_checkpoint
from graph.errors import AnswerValidationError, InvalidTransitionError, SessionConflictError, SessionNotFoundError
from graph.state import Answer, Candidate, ContactInfo, Session, dump_snapshot, load_snapshot
from observability.logger import log_event
from observability.tracing import span
from services.scoring import SessionAggregator
from services.timer import Cancellable, Clock, ThreadingClock, TimerController
from storage.candidates import CandidateStore

logger = logging.getLogger(__name__)

ContactInput = Union[ContactInfo, Mapping[str, Any], None]


class InterviewSession:
    """Single-writer handle around one interview session."""

    def __init__(
        self,
        *,
        supplier: Optional[QuestionSupplier] = None,
        evaluator: Optional[AnswerEvaluator] = None,
        aggregator: Optional[SessionAggregator] = None,
        clock: Optional[Clock] = None,
        store: Optional[CandidateStore] = None,
        total_questions: Optional[int] = None,
        auto_tick: bool = True,
        checkpoints: bool = False,
        session: Optional[Session] = None,
        candidate: Optional[Candidate] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._clock: Clock = clock or ThreadingClock()
        self._store = store
        self._supplier = supplier or QuestionSupplier()
        self._evaluator = evaluator or AnswerEvaluator()
        self._aggregator = aggregator or SessionAggregator(store=store, now=self._clock.now)
        self._total_questions = total_questions or settings.TOTAL_QUESTIONS
        self._auto_tick = auto_tick
        self._checkpoints = checkpoints
        self._timer = TimerController()
        self._pending_tick: Optional[Cancellable] = None
        self._session = session or Session()
        self._candidate = candidate
        self.events: List[Dict[str, Any]] = []

    # ------------------------------------------------------------------ views
    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def state(self) -> Session:
        with self._lock:
            return self._session

    @property
    def candidate(self) -> Optional[Candidate]:
        with self._lock:
            return self._candidate

    @property
    def timer(self) -> TimerController:
        return self._timer

    def current(self) -> Tuple[Session, Optional[Candidate]]:
        """Consistent (session, candidate) pair for read-side views."""

        with self._lock:
            return self._session, self._candidate

    # ------------------------------------------------------------- operations
    def intake(self, contact: ContactInput = None) -> Session:
        """Create the candidate and either collect missing fields or start questions."""

        with self._lock:
            if self._session.phase != "idle":
                raise InvalidTransitionError("start an interview", self._session.phase)
            info = contact if isinstance(contact, ContactInfo) else ContactInfo(**dict(contact or {}))
            self._candidate = Candidate.from_contact(info, self._clock.now())
            if self._store is not None:
                self._store.create(self._candidate)
            self._session = self._session.evolve(candidate_id=self._candidate.id)
            self._log("intake", phase=self._session.phase)

            missing = info.missing_fields()
            if missing:
                self._session = transitions.request_contact_fields(self._session, missing)
                self._log("collecting_info", phase=self._session.phase, missing=list(self._session.missing_fields))
            else:
                self._start_questions()
            self._checkpoint()
            return self._session

    def provide_field(self, field: str, value: str) -> Session:
        with self._lock:
            if self._session.phase != "collecting_info":
                raise InvalidTransitionError("provide a contact field", self._session.phase)
            if field not in self._session.missing_fields:
                raise ValueError(f"field '{field}' is not missing")
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"value for '{field}' must not be blank")

            self._candidate = self._candidate.with_contact(field, value, self._clock.now())
            if self._store is not None:
                self._store.update(self._candidate.id, **{field: getattr(self._candidate, field)})
            self._session = transitions.clear_missing_field(self._session, field)
            self._log("field_provided", phase=self._session.phase, field=field)
            if not self._session.missing_fields:
                self._start_questions()
            self._checkpoint()
            return self._session

    def skip_collection(self) -> Session:
        """Start questions with whatever contact data was collected so far."""

        with self._lock:
            if self._session.phase != "collecting_info":
                raise InvalidTransitionError("skip contact collection", self._session.phase)
            self._log("collection_skipped", phase=self._session.phase, missing=list(self._session.missing_fields))
            self._start_questions()
            self._checkpoint()
            return self._session

    def submit(self, text: str) -> Answer:
        """Record a manual answer for the current question.

        Raises:
            InvalidTransitionError: No question is active.
            AnswerValidationError: ``text`` is empty or whitespace; nothing changes.
        """

        with self._lock:
            if not self._session.is_active:
                raise InvalidTransitionError("submit an answer", self._session.phase)
            if not isinstance(text, str) or not text.strip():
                raise AnswerValidationError("answer text must not be blank")
            answer = self._record(text.strip(), auto_submitted=False)
            self._checkpoint()
            return answer

    def tick(self) -> Optional[Answer]:
        """Advance one logical second; returns the auto-submitted answer on expiry."""

        with self._lock:
            answer = self._advance_second()
            self._checkpoint()
            return answer

    def reset(self) -> Session:
        with self._lock:
            self._cancel_timer()
            previous = self._session.phase
            abandoned = self._candidate.id if self._candidate is not None and _is_live(self) else None
            self._session = transitions.reset(self._session)
            self._candidate = None
            if self._checkpoints:
                delete_checkpoint(self._session.session_id)
            level = logging.WARNING if abandoned else logging.INFO
            self._log("reset", level, phase=self._session.phase, reason=f"from {previous}", abandoned=abandoned)
            return self._session

    def close(self) -> None:
        """Stop the countdown without touching session state or checkpoints."""

        with self._lock:
            self._cancel_timer()

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            if self._candidate is None:
                raise InvalidTransitionError("take a snapshot", self._session.phase)
            return dump_snapshot(self._session, self._candidate)

    @classmethod
    def restore(cls, snapshot: Mapping[str, Any], **kwargs: Any) -> "InterviewSession":
        """Rebuild a handle from ``snapshot()`` output and resume its timer.

        Raises:
            CorruptSnapshotError: The snapshot breaks a session invariant.
        """

        session, candidate = load_snapshot(snapshot)
        handle = cls(session=session, candidate=candidate, **kwargs)
        with handle._lock:
            handle._ensure_stored()
            if session.is_active and session.timer_active:
                handle._timer.resume(session.current_budget, session.remaining_seconds)
                handle._schedule_tick()
            elif session.phase == "completed" and candidate.interview_result is None:
                handle._complete()
            handle._log("restored", phase=session.phase, remaining=session.remaining_seconds)
        return handle

    # -------------------------------------------------------------- internals
    def _log(self, kind: str, level: int = logging.INFO, **fields: Any) -> None:
        candidate_id = self._candidate.id if self._candidate is not None else None
        log_event(kind, self._session.session_id, level=level, candidate_id=candidate_id, **fields)

    def _ensure_stored(self) -> None:
        if self._store is None or self._candidate is None:
            return
        try:
            self._store.get(self._candidate.id)
        except SessionNotFoundError:
            self._store.create(self._candidate)

    def _checkpoint(self) -> None:
        if self._checkpoints and self._candidate is not None:
            save_checkpoint(self._session, self._candidate)

    def _start_questions(self) -> None:
        with span(self, "question_supply", total=self._total_questions):
            questions = self._supplier.supply(self._total_questions)
        now = self._clock.now()
        self._session = transitions.begin_questions(self._session, questions, now=now)
        self._candidate = self._candidate.with_status("interviewing", now)
        if self._store is not None:
            self._store.update(self._candidate.id, status="interviewing", updated_at=now)
        self._log("questions_started", phase=self._session.phase, index=0, remaining=self._session.remaining_seconds)
        self._arm_current()

    def _arm_current(self) -> None:
        self._timer.arm(self._session.current_budget)
        self._schedule_tick()

    def _cancel_timer(self) -> None:
        self._timer.cancel()
        if self._pending_tick is not None:
            self._pending_tick.cancel()
            self._pending_tick = None

    def _schedule_tick(self) -> None:
        if not self._auto_tick or not self._timer.armed:
            return
        if self._pending_tick is not None:
            self._pending_tick.cancel()
        generation = self._timer.generation
        self._pending_tick = self._clock.after(settings.TICK_SECONDS, lambda: self._scheduled_tick(generation))

    def _scheduled_tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._timer.generation:
                logger.debug("discarding stale tick session=%s generation=%d", self.session_id, generation)
                return
            self._pending_tick = None
            self._advance_second(generation)
            self._checkpoint()

    def _advance_second(self, generation: Optional[int] = None) -> Optional[Answer]:
        if not self._session.is_active or not self._timer.armed:
            return None
        signal = self._timer.tick(generation)
        self._session = transitions.tick(self._session)
        if signal is None:
            self._schedule_tick()
            return None
        self._log("timeout", level=logging.WARNING, phase=self._session.phase, index=self._session.current_index)
        return self._record(signal, auto_submitted=True)

    def _record(self, text: str, *, auto_submitted: bool) -> Answer:
        question = self._session.current_question
        index = self._session.current_index
        time_spent = self._session.current_budget - self._session.remaining_seconds
        self._cancel_timer()
        self._session = transitions.disarm(self._session)

        with span(self, "evaluate", index=index):
            result = self._evaluator.evaluate(text, question)
        answer = Answer(
            question_id=question.id,
            text=text,
            submitted_at=self._clock.now(),
            time_spent=max(0, time_spent),
            score=result.score,
            feedback=result.feedback,
            keywords=result.keywords,
            generated_by=result.generated_by,
            auto_submitted=auto_submitted,
        )
        self._session = transitions.record_answer(self._session, answer)
        self._log("answer", index=index, score=answer.score, source=answer.generated_by, auto=auto_submitted)

        if self._session.phase == "completed":
            self._complete()
        else:
            self._log(
                "question",
                phase=self._session.phase,
                index=self._session.current_index,
                remaining=self._session.remaining_seconds,
            )
            self._arm_current()
        return answer

    def _complete(self) -> None:
        with span(self, "finalize"):
            self._candidate = self._aggregator.finalize(self._session, self._candidate)
        result = self._candidate.interview_result
        self._log("completed", phase=self._session.phase, score=result.total_score, source=result.summary_source)


def _is_live(handle: InterviewSession) -> bool:
    return handle.state.phase not in ("idle", "completed")


class SessionRegistry:
    """Live session handles by id; one active session per candidate."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, InterviewSession] = {}

    def add(self, handle: InterviewSession) -> InterviewSession:
        with self._lock:
            candidate = handle.candidate
            if candidate is not None:
                other = self.active_for(candidate.id)
                if other is not None and other is not handle:
                    raise SessionConflictError(
                        f"candidate '{candidate.id}' already has active session '{other.session_id}'"
                    )
            existing = self._sessions.get(handle.session_id)
            if existing is not None and existing is not handle and _is_live(existing):
                raise SessionConflictError(f"session '{handle.session_id}' is already live")
            self._sessions[handle.session_id] = handle
            return handle

    def get(self, session_id: str) -> InterviewSession:
        with self._lock:
            try:
                return self._sessions[session_id]
            except KeyError:
                raise SessionNotFoundError(f"session '{session_id}' not found") from None

    def remove(self, session_id: str) -> Optional[InterviewSession]:
        with self._lock:
            return self._sessions.pop(session_id, None)

    def active_for(self, candidate_id: str) -> Optional[InterviewSession]:
        with self._lock:
            for handle in self._sessions.values():
                candidate = handle.candidate
                if candidate is not None and candidate.id == candidate_id and _is_live(handle):
                    return handle
            return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = ["InterviewSession", "SessionRegistry"]
