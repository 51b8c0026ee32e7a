from __future__ import annotations

from typing import Any

from interview_pilot.db.store import DocumentStore
from interview_pilot.models import to_iso, utc_now

USERS = "users"


class UserRepository:
    def __init__(self, store: DocumentStore):
        self._store = store

    def get(self, user_id: str) -> dict[str, Any] | None:
        return self._store.get(USERS, user_id)

    def find_by_email(self, email: str) -> dict[str, Any] | None:
        normalized = str(email or "").strip().lower()
        if not normalized:
            return None
        return self._store.find_one(USERS, lambda doc: doc.get("email") == normalized)

    def email_taken(self, email: str) -> bool:
        return self.find_by_email(email) is not None

    def create(self, user: dict[str, Any]) -> dict[str, Any]:
        now = to_iso(utc_now())
        user.setdefault("created_at", now)
        user["updated_at"] = now
        return self._store.put(USERS, user)

    def save(self, user: dict[str, Any]) -> dict[str, Any]:
        user["updated_at"] = to_iso(utc_now())
        return self._store.put(USERS, user)
