"""Ordered fallback strategies expressed as result values."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of one strategy: either a value or an error description."""

    source: str
    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, source: str, value: T) -> "Outcome[T]":
        return cls(source=source, value=value)

    @classmethod
    def failure(cls, source: str, error: str) -> "Outcome[T]":
        return cls(source=source, error=error or "failed")


Strategy = Tuple[str, Callable[[], Any]]


def attempt(source: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Outcome[T]:
    """Run ``fn`` and convert any exception into a failed outcome.

    This is the only place where exceptions from collaborators are caught;
    everything above it works with ``Outcome`` values.
    """

    try:
        return Outcome.success(source, fn(*args, **kwargs))
    except Exception as exc:  # noqa: BLE001
        return Outcome.failure(source, f"{type(exc).__name__}: {exc}")


def first_success(strategies: Sequence[Strategy]) -> Outcome[Any]:
    """Evaluate strategies in order and return the first successful outcome.

    Each strategy is a ``(source, thunk)`` pair. A thunk either returns a
    plain value (success) or an ``Outcome`` of its own, which lets a step
    decline without raising. The last failure is returned when every step
    fails.
    """

    if not strategies:
        raise ValueError("cascade needs at least one strategy")
    outcome: Outcome[Any] = Outcome.failure("none", "no strategy ran")
    for source, thunk in strategies:
        outcome = attempt(source, thunk)
        if outcome.ok and isinstance(outcome.value, Outcome):
            outcome = outcome.value
        if outcome.ok:
            return outcome
        logger.warning("cascade step failed source=%s error=%s", source, outcome.error)
    return outcome


__all__ = ["Outcome", "Strategy", "attempt", "first_success"]
