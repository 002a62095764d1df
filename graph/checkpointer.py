"""Snapshot checkpoint persistence helpers."""
from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional, Tuple

from config.settings import settings

from .errors import CorruptSnapshotError
from .state import Candidate, Session, dump_snapshot, load_snapshot


def _checkpoint_path(session_id: str) -> str:
    return os.path.join(settings.CHECKPOINT_DIR, f"{session_id}.json")


def save_checkpoint(session: Session, candidate: Candidate) -> str:
    """Persist the session/candidate snapshot atomically and return the file path."""
    os.makedirs(settings.CHECKPOINT_DIR, exist_ok=True)
    path = _checkpoint_path(session.session_id)
    tmp_path = path + ".tmp"
    with open(tmp_path, "w", encoding="utf-8") as handle:
        json.dump(dump_snapshot(session, candidate), handle, ensure_ascii=False)
        handle.flush()
        os.fsync(handle.fileno())
    os.replace(tmp_path, path)
    return path


def load_checkpoint(session_id: str) -> Optional[Tuple[Session, Candidate]]:
    """Load a snapshot from disk if present.

    Raises:
        CorruptSnapshotError: If the file is not valid JSON or breaks an invariant.
    """
    path = _checkpoint_path(session_id)
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as handle:
        try:
            data: Dict[str, Any] = json.load(handle)
        except json.JSONDecodeError as exc:
            raise CorruptSnapshotError(f"checkpoint {session_id} is not valid JSON") from exc
    return load_snapshot(data)


def delete_checkpoint(session_id: str) -> bool:
    path = _checkpoint_path(session_id)
    if not os.path.exists(path):
        return False
    os.remove(path)
    return True


__all__ = ["delete_checkpoint", "load_checkpoint", "save_checkpoint"]
