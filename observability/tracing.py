"""Span helper recording step timings on a session handle."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator


@contextmanager
def span(target, name: str, **tags) -> Iterator[None]:
    """Append ``{"span": name, "ms": elapsed}`` to ``target.events`` on exit."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        target.events.append({"span": name, "ms": elapsed_ms, **tags})


__all__ = ["span"]
