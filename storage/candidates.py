"""Candidate persistence: records, status changes and attached interview results."""
from __future__ import annotations

import json
from typing import Any, List, Literal, Optional, Protocol

from graph.errors import SessionNotFoundError
from graph.state import Candidate, InterviewResult, utcnow

from .sqlite import get_conn

SortKey = Literal["score", "name", "created_at"]
SortOrder = Literal["asc", "desc"]

UPDATABLE_FIELDS = frozenset({"name", "email", "phone", "status", "updated_at"})

_ORDER_COLUMNS = {
    "score": "total_score",
    "name": "LOWER(COALESCE(name, ''))",
    "created_at": "created_at",
}


class CandidateStore(Protocol):
    def create(self, candidate: Candidate) -> Candidate: ...

    def update(self, candidate_id: str, **fields: Any) -> Candidate: ...

    def attach_result(self, candidate_id: str, result: InterviewResult) -> Candidate: ...

    def get(self, candidate_id: str) -> Candidate: ...


def _row_to_candidate(row) -> Candidate:
    result = None
    if row["result_json"]:
        result = InterviewResult.model_validate(json.loads(row["result_json"]))
    return Candidate(
        id=row["candidate_id"],
        name=row["name"],
        email=row["email"],
        phone=row["phone"],
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        interview_result=result,
    )


class SqliteCandidateStore:
    """SQLite-backed candidate records on ``settings.DB_PATH``."""

    def create(self, candidate: Candidate) -> Candidate:
        with get_conn() as conn:
            conn.execute(
                """INSERT INTO candidates
                   (candidate_id, name, email, phone, status, created_at, updated_at, total_score, result_json)
                   VALUES (?, ?, ?, ?, ?, ?, ?, NULL, NULL)""",
                (
                    candidate.id,
                    candidate.name,
                    candidate.email,
                    candidate.phone,
                    candidate.status,
                    candidate.created_at.isoformat(),
                    candidate.updated_at.isoformat(),
                ),
            )
        return candidate

    def update(self, candidate_id: str, **fields: Any) -> Candidate:
        """Apply contact/status changes and return the stored candidate."""

        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot update fields: {', '.join(sorted(unknown))}")
        current = self.get(candidate_id)
        changes = {"updated_at": utcnow(), **fields}
        updated = Candidate.model_validate({**current.model_dump(), **changes})
        with get_conn() as conn:
            conn.execute(
                """UPDATE candidates
                   SET name = ?, email = ?, phone = ?, status = ?, updated_at = ?
                   WHERE candidate_id = ?""",
                (
                    updated.name,
                    updated.email,
                    updated.phone,
                    updated.status,
                    updated.updated_at.isoformat(),
                    candidate_id,
                ),
            )
        return updated

    def attach_result(self, candidate_id: str, result: InterviewResult) -> Candidate:
        """Store the final result and mark the candidate completed."""

        current = self.get(candidate_id)
        updated = current.model_copy(
            update={"status": "completed", "interview_result": result, "updated_at": result.end_time}
        )
        with get_conn() as conn:
            conn.execute(
                """UPDATE candidates
                   SET status = ?, updated_at = ?, total_score = ?, result_json = ?
                   WHERE candidate_id = ?""",
                (
                    updated.status,
                    updated.updated_at.isoformat(),
                    result.total_score,
                    result.model_dump_json(),
                    candidate_id,
                ),
            )
        return updated

    def get(self, candidate_id: str) -> Candidate:
        with get_conn() as conn:
            row = conn.execute("SELECT * FROM candidates WHERE candidate_id = ?", (candidate_id,)).fetchone()
        if row is None:
            raise SessionNotFoundError(f"candidate '{candidate_id}' not found")
        return _row_to_candidate(row)

    def list_candidates(
        self,
        *,
        search: Optional[str] = None,
        sort_by: SortKey = "created_at",
        order: SortOrder = "desc",
    ) -> List[Candidate]:
        """List candidates filtered by a name/email/phone substring.

        When sorting by score, unscored candidates come last in either order.
        """

        if sort_by not in _ORDER_COLUMNS:
            raise ValueError(f"unsupported sort key '{sort_by}'")
        if order not in ("asc", "desc"):
            raise ValueError(f"unsupported sort order '{order}'")
        direction = order.upper()
        query = "SELECT * FROM candidates"
        params: tuple = ()
        if search and search.strip():
            needle = f"%{search.strip().lower()}%"
            query += (
                " WHERE LOWER(COALESCE(name, '')) LIKE ?"
                " OR LOWER(COALESCE(email, '')) LIKE ?"
                " OR LOWER(COALESCE(phone, '')) LIKE ?"
            )
            params = (needle, needle, needle)
        column = _ORDER_COLUMNS[sort_by]
        if sort_by == "score":
            column = f"total_score IS NULL, {column}"
        query += f" ORDER BY {column} {direction}, candidate_id {direction}"
        with get_conn() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_candidate(row) for row in rows]

    def delete(self, candidate_id: str) -> bool:
        with get_conn() as conn:
            cur = conn.execute("DELETE FROM candidates WHERE candidate_id = ?", (candidate_id,))
            return cur.rowcount > 0


__all__ = ["CandidateStore", "SortKey", "SortOrder", "SqliteCandidateStore", "UPDATABLE_FIELDS"]
