"""FastAPI routes for interview session control."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

from fastapi import APIRouter, Depends, HTTPException

from api.schemas import (
    AnswerReq,
    AnswerView,
    ApiResp,
    CandidateSummary,
    FieldReq,
    QuestionView,
    RestoreReq,
    ResultView,
    SessionReq,
    SortKey,
    SortOrder,
    StartReq,
    TickReq,
)
from graph.checkpointer import load_checkpoint
from graph.errors import (
    CorruptSnapshotError,
    InterviewError,
    InvalidTransitionError,
    SessionConflictError,
    SessionNotFoundError,
)
from graph.state import Answer, ContactInfo, dump_snapshot
from services.sessions import InterviewSession, SessionRegistry
from services.timer import Clock, ThreadingClock
from storage.candidates import SqliteCandidateStore

router = APIRouter(prefix="/api/interview-sessions")
candidates_router = APIRouter(prefix="/api/candidates")


class Runtime:
    """Everything a request needs: live sessions, candidate store and session factory."""

    def __init__(
        self,
        *,
        store: Optional[SqliteCandidateStore] = None,
        clock: Optional[Clock] = None,
        auto_tick: bool = True,
        checkpoints: bool = True,
        **session_kwargs,
    ) -> None:
        self.registry = SessionRegistry()
        self.store = store or SqliteCandidateStore()
        self.clock = clock or ThreadingClock()
        self.auto_tick = auto_tick
        self.checkpoints = checkpoints
        self._session_kwargs = session_kwargs

    def _options(self, **overrides) -> dict:
        options = {
            "store": self.store,
            "clock": self.clock,
            "auto_tick": self.auto_tick,
            "checkpoints": self.checkpoints,
            **self._session_kwargs,
        }
        options.update({key: value for key, value in overrides.items() if value is not None})
        return options

    def new_session(self, total_questions: Optional[int] = None) -> InterviewSession:
        return InterviewSession(**self._options(total_questions=total_questions))

    def restore(self, snapshot) -> InterviewSession:
        handle = InterviewSession.restore(snapshot, **self._options())
        try:
            return self.registry.add(handle)
        except SessionConflictError:
            handle.close()
            raise


_runtime: Optional[Runtime] = None
_runtime_lock = threading.Lock()


def get_runtime() -> Runtime:
    global _runtime
    with _runtime_lock:
        if _runtime is None:
            _runtime = Runtime()
        return _runtime


@contextmanager
def _domain_errors() -> Iterator[None]:
    try:
        yield
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0]) if exc.args else "not found") from exc
    except (InvalidTransitionError, SessionConflictError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (CorruptSnapshotError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except InterviewError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _answer_view(answer: Answer) -> AnswerView:
    return AnswerView(
        question_id=answer.question_id,
        text=answer.text,
        score=answer.score,
        feedback=answer.feedback,
        time_spent=answer.time_spent,
        generated_by=answer.generated_by,
        auto_submitted=answer.auto_submitted,
    )


def _resp_from_handle(handle: InterviewSession, last_answer: Optional[Answer] = None) -> ApiResp:
    session, candidate = handle.current()
    question = session.current_question
    result = candidate.interview_result if candidate is not None else None
    return ApiResp(
        session_id=session.session_id,
        candidate_id=candidate.id if candidate else None,
        candidate_name=candidate.display_name if candidate else None,
        phase=session.phase,
        missing_fields=list(session.missing_fields),
        question=QuestionView(**question.model_dump()) if question else None,
        question_number=session.current_index + 1 if question else len(session.answers),
        total_questions=len(session.questions),
        remaining_seconds=session.remaining_seconds,
        timer_active=session.timer_active,
        last_answer=_answer_view(last_answer) if last_answer else None,
        result=(
            ResultView(
                total_score=result.total_score,
                summary=result.summary,
                summary_source=result.summary_source,
                end_time=result.end_time,
                answers=[_answer_view(answer) for answer in result.answers],
            )
            if result
            else None
        ),
        event_log=list(handle.events),
    )


@router.post("/start", response_model=ApiResp)
def start(req: StartReq, runtime: Runtime = Depends(get_runtime)) -> ApiResp:
    with _domain_errors():
        handle = runtime.new_session(req.total_questions)
        handle.intake(ContactInfo(name=req.name, email=req.email, phone=req.phone))
        runtime.registry.add(handle)
    return _resp_from_handle(handle)


@router.post("/fields", response_model=ApiResp)
def provide_field(req: FieldReq, runtime: Runtime = Depends(get_runtime)) -> ApiResp:
    with _domain_errors():
        handle = runtime.registry.get(req.session_id)
        handle.provide_field(req.field, req.value)
    return _resp_from_handle(handle)


@router.post("/skip-collection", response_model=ApiResp)
def skip_collection(req: SessionReq, runtime: Runtime = Depends(get_runtime)) -> ApiResp:
    with _domain_errors():
        handle = runtime.registry.get(req.session_id)
        handle.skip_collection()
    return _resp_from_handle(handle)


@router.post("/answer", response_model=ApiResp)
def answer(req: AnswerReq, runtime: Runtime = Depends(get_runtime)) -> ApiResp:
    with _domain_errors():
        handle = runtime.registry.get(req.session_id)
        recorded = handle.submit(req.text)
    return _resp_from_handle(handle, recorded)


@router.post("/tick", response_model=ApiResp)
def tick(req: TickReq, runtime: Runtime = Depends(get_runtime)) -> ApiResp:
    """Advance the countdown for clients that drive time themselves."""
    with _domain_errors():
        handle = runtime.registry.get(req.session_id)
        recorded: Optional[Answer] = None
        for _ in range(req.seconds):
            fired = handle.tick()
            if fired is not None:
                recorded = fired
                break
    return _resp_from_handle(handle, recorded)


@router.post("/reset", response_model=ApiResp)
def reset(req: SessionReq, runtime: Runtime = Depends(get_runtime)) -> ApiResp:
    with _domain_errors():
        handle = runtime.registry.get(req.session_id)
        handle.reset()
    return _resp_from_handle(handle)


@router.post("/restore", response_model=ApiResp)
def restore(req: RestoreReq, runtime: Runtime = Depends(get_runtime)) -> ApiResp:
    with _domain_errors():
        if req.snapshot is not None:
            snapshot = req.snapshot
        else:
            stored = load_checkpoint(req.session_id)
            if stored is None:
                raise SessionNotFoundError(f"no checkpoint for session '{req.session_id}'")
            snapshot = dump_snapshot(*stored)
        handle = runtime.restore(snapshot)
    return _resp_from_handle(handle)


@router.get("/{session_id}", response_model=ApiResp)
def fetch(session_id: str, runtime: Runtime = Depends(get_runtime)) -> ApiResp:
    with _domain_errors():
        handle = runtime.registry.get(session_id)
    return _resp_from_handle(handle)


@router.get("/{session_id}/snapshot")
def fetch_snapshot(session_id: str, runtime: Runtime = Depends(get_runtime)) -> dict:
    with _domain_errors():
        return runtime.registry.get(session_id).snapshot()


@candidates_router.get("", response_model=List[CandidateSummary])
def list_candidates(
    search: Optional[str] = None,
    sort_by: SortKey = "created_at",
    order: SortOrder = "desc",
    runtime: Runtime = Depends(get_runtime),
) -> List[CandidateSummary]:
    rows = runtime.store.list_candidates(search=search, sort_by=sort_by, order=order)
    return [
        CandidateSummary(
            candidate_id=candidate.id,
            name=candidate.name,
            email=candidate.email,
            phone=candidate.phone,
            status=candidate.status,
            total_score=candidate.interview_result.total_score if candidate.interview_result else None,
            summary=candidate.interview_result.summary if candidate.interview_result else None,
            created_at=candidate.created_at,
        )
        for candidate in rows
    ]


__all__ = ["Runtime", "candidates_router", "get_runtime", "router"]
