from __future__ import annotations  # Remote content-generation service client

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from textwrap import dedent
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Type, TypeVar

from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agents.types import KeywordCounts, Question, ScoreResult
from config.registry import EVAL_KEY, QUESTION_KEY, SUMMARY_KEY, bind_model, get_model
from config.routing import AppConfig, resolve_registry
from config.settings import settings
from graph.errors import RemoteServiceError
from llm_gateway import runnable as llm_runnable

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class GeneratedQuestion(BaseModel):  # Question text produced remotely
    model_config = ConfigDict(str_strip_whitespace=True)

    question: str = Field(min_length=1)


class RemoteEvaluation(BaseModel):  # Remote answer score
    model_config = ConfigDict(str_strip_whitespace=True)

    score: float
    feedback: str = Field(min_length=1)
    keywords: KeywordCounts = Field(default_factory=KeywordCounts)


class RemoteSummary(BaseModel):  # Remote narrative summary
    model_config = ConfigDict(str_strip_whitespace=True)

    summary: str = Field(min_length=1)


SCHEMAS: Dict[str, Type[BaseModel]] = {
    QUESTION_KEY: GeneratedQuestion,
    EVAL_KEY: RemoteEvaluation,
    SUMMARY_KEY: RemoteSummary,
}

INTERVIEWER_GUIDANCE = dedent(
    """
    You write questions for a timed technical screening interview for a full-stack role.
    Ask exactly one question. It must be answerable in a few sentences within the time budget.
    Never repeat a well-known textbook definition question verbatim.
    """
).strip()

EVALUATOR_GUIDANCE = dedent(
    """
    You grade one free-text answer from a technical screening interview.
    Score from 0 to 10 for correctness and depth. Keep feedback to one sentence.
    Count matched concepts as high, medium or low importance keywords.
    """
).strip()

SUMMARY_GUIDANCE = dedent(
    """
    You write the closing assessment for a technical screening interview.
    Use three sentences: overall level, strengths or gaps seen in the answers, and a hiring recommendation.
    """
).strip()

PROMPTS: Dict[str, ChatPromptTemplate] = {
    QUESTION_KEY: ChatPromptTemplate.from_messages(
        [
            ("system", INTERVIEWER_GUIDANCE),
            ("human", "Topic: {topic}\nDifficulty: {difficulty}\nReturn JSON with the field 'question'."),
        ]
    ),
    EVAL_KEY: ChatPromptTemplate.from_messages(
        [
            ("system", EVALUATOR_GUIDANCE),
            (
                "human",
                "Topic: {topic}\nDifficulty: {difficulty}\nQuestion: {question}\nAnswer: {answer}\n"
                "Return JSON with score, feedback and keywords.",
            ),
        ]
    ),
    SUMMARY_KEY: ChatPromptTemplate.from_messages(
        [
            ("system", SUMMARY_GUIDANCE),
            ("human", "Candidate: {candidate_name}\nTranscript:\n{transcript}\nReturn JSON with the field 'summary'."),
        ]
    ),
}


def _call_remote(key: str, schema: Type[M], *, timeout_s: Optional[float] = None, **inputs: Any) -> M:
    try:
        model = get_model(key)
    except KeyError as exc:
        raise RemoteServiceError(f"{key} is not bound") from exc
    limit = settings.REMOTE_TIMEOUT_S if timeout_s is None else timeout_s
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="content-service")
    future = pool.submit(model, **inputs)
    try:
        raw = future.result(timeout=limit)
    except FuturesTimeout as exc:
        future.cancel()
        raise RemoteServiceError(f"{key} timed out after {limit:.1f}s") from exc
    except Exception as exc:  # noqa: BLE001
        raise RemoteServiceError(f"{key} failed: {exc}") from exc
    finally:
        pool.shutdown(wait=False)
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()
    try:
        return schema.model_validate(raw)
    except ValidationError as exc:
        raise RemoteServiceError(f"{key} returned an invalid payload") from exc


def generate_question(topic: str, difficulty: str, *, timeout_s: Optional[float] = None) -> Question:
    """Ask the remote service for one question on ``topic`` at ``difficulty``."""

    out = _call_remote(QUESTION_KEY, GeneratedQuestion, timeout_s=timeout_s, topic=topic, difficulty=difficulty)
    return Question(text=out.question, difficulty=difficulty, topic=topic, generated_by="remote")


def evaluate_answer(text: str, question: Question, *, timeout_s: Optional[float] = None) -> ScoreResult:
    """Score ``text`` remotely; the score is clamped into 0..10."""

    out = _call_remote(
        EVAL_KEY,
        RemoteEvaluation,
        timeout_s=timeout_s,
        answer=text,
        question=question.text,
        topic=question.topic,
        difficulty=question.difficulty,
    )
    bounded = max(0.0, min(10.0, float(out.score)))
    return ScoreResult(
        score=int(bounded + 0.5),
        feedback=out.feedback,
        keywords=out.keywords,
        generated_by="remote",
    )


def generate_summary(
    answers: Sequence[BaseModel],
    candidate_meta: Mapping[str, Any],
    *,
    timeout_s: Optional[float] = None,
) -> str:
    """Request a narrative summary of the whole answer set."""

    rows = [answer.model_dump(mode="json") for answer in answers]
    transcript = "\n".join(
        f"{idx + 1}. score={row.get('score')} answer={row.get('text', '')!r}" for idx, row in enumerate(rows)
    )
    out = _call_remote(
        SUMMARY_KEY,
        RemoteSummary,
        timeout_s=timeout_s,
        answers=rows,
        candidate=dict(candidate_meta),
        candidate_name=candidate_meta.get("name") or "Anonymous Candidate",
        transcript=transcript or "(no answers)",
    )
    return out.summary


def _chain_model(chain: Any) -> Callable[..., Dict[str, Any]]:
    def _invoke(**inputs: Any) -> Dict[str, Any]:
        return chain.invoke(inputs).model_dump()

    return _invoke


def bind_gateway_models(cfg: AppConfig) -> None:
    """Bind LLM-backed implementations for every content-service key."""

    for key, (route, schema) in resolve_registry(cfg, SCHEMAS).items():
        bind_model(key, _chain_model(PROMPTS[key] | llm_runnable(route, schema)))
        logger.info("bound content-service key=%s route=%s model=%s", key, route.name, route.model)


__all__ = [
    "GeneratedQuestion",
    "RemoteEvaluation",
    "RemoteSummary",
    "SCHEMAS",
    "bind_gateway_models",
    "evaluate_answer",
    "generate_question",
    "generate_summary",
]
