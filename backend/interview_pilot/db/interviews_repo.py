from __future__ import annotations

from datetime import datetime
from typing import Any

from interview_pilot.db.store import DocumentStore
from interview_pilot.models import EndedReason, InterviewStatus, to_iso, utc_now

INTERVIEWS = "interviews"
DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 100


def clamp_list_limit(value: Any) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        limit = DEFAULT_LIST_LIMIT
    return max(1, min(limit, MAX_LIST_LIMIT))


class InterviewRepository:
    def __init__(self, store: DocumentStore):
        self._store = store

    def get(self, interview_id: str) -> dict[str, Any] | None:
        return self._store.get(INTERVIEWS, interview_id)

    def create(self, interview: dict[str, Any]) -> dict[str, Any]:
        now = to_iso(utc_now())
        interview.setdefault("created_at", now)
        interview["updated_at"] = now
        return self._store.put(INTERVIEWS, interview)

    def save(self, interview: dict[str, Any]) -> dict[str, Any]:
        interview["updated_at"] = to_iso(utc_now())
        return self._store.put(INTERVIEWS, interview)

    def list_for_user(
        self,
        user_id: str,
        status: str | None = None,
        limit: int | None = DEFAULT_LIST_LIMIT,
    ) -> list[dict[str, Any]]:
        """Newest first by last update; ``limit=None`` returns every match."""
        def _matches(doc: dict[str, Any]) -> bool:
            if doc.get("user_id") != user_id:
                return False
            return not status or doc.get("status") == status

        rows = self._store.find(INTERVIEWS, _matches)
        rows.sort(key=lambda doc: str(doc.get("updated_at") or ""), reverse=True)
        if limit is None:
            return rows
        return rows[:clamp_list_limit(limit)]

    def abandon_in_progress(self, user_id: str, now: datetime | None = None) -> int:
        stamp = to_iso(now or utc_now())
        return self._store.update_many(
            INTERVIEWS,
            lambda doc: doc.get("user_id") == user_id and doc.get("status") == InterviewStatus.IN_PROGRESS.value,
            {
                "status": InterviewStatus.COMPLETED.value,
                "ended_reason": EndedReason.ABANDONED.value,
                "completed_at": stamp,
                "updated_at": stamp,
            },
        )
