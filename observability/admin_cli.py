"""Lightweight CLI for inspecting stored candidates and their interview results."""
from __future__ import annotations

import argparse
from typing import List, Optional

from config.settings import settings
from storage.candidates import SqliteCandidateStore
from storage.migrate import migrate


def format_row(candidate) -> str:
    result = candidate.interview_result
    score = "-" if result is None else str(result.total_score)
    return (
        f"[{candidate.created_at.isoformat(timespec='seconds')}] {candidate.id} "
        f"{candidate.display_name} <{candidate.email or '-'}> status={candidate.status} score={score}"
    )


def list_candidates(search: Optional[str] = None, sort_by: str = "created_at", order: str = "desc", limit: int = 20) -> List[str]:
    migrate(settings.DB_PATH)
    store = SqliteCandidateStore()
    rows = [format_row(candidate) for candidate in store.list_candidates(search=search, sort_by=sort_by, order=order)]
    return rows[:limit]


def show_summary(candidate_id: str) -> str:
    migrate(settings.DB_PATH)
    candidate = SqliteCandidateStore().get(candidate_id)
    result = candidate.interview_result
    if result is None:
        return f"{candidate.display_name}: no result yet (status={candidate.status})"
    lines = [
        f"{candidate.display_name}: total={result.total_score} summary_source={result.summary_source}",
        result.summary,
    ]
    for idx, answer in enumerate(result.answers, start=1):
        flag = " (auto)" if answer.auto_submitted else ""
        lines.append(f"  Q{idx} score={answer.score} spent={answer.time_spent}s{flag}")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Inspect interview candidates")
    parser.add_argument("--search", help="Filter by name, email or phone substring")
    parser.add_argument("--sort", choices=["score", "name", "created_at"], default="created_at")
    parser.add_argument("--order", choices=["asc", "desc"], default="desc")
    parser.add_argument("--limit", type=int, default=20)
    parser.add_argument("--show", metavar="CANDIDATE_ID", help="Print the stored result for one candidate")
    args = parser.parse_args(argv)

    if args.show:
        print(show_summary(args.show))
        return
    for line in list_candidates(args.search, args.sort, args.order, args.limit):
        print(line)


if __name__ == "__main__":
    main()
