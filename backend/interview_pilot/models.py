"""
Document shapes for users and interviews.

Documents are plain dicts persisted by the document store. Timestamps are
stored as ISO-8601 strings in UTC.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from interview_pilot.industry_modes import IndustryMode, normalize_industry_mode

MIN_QUESTION_COUNT = 3
MAX_QUESTION_COUNT = 7
DEFAULT_QUESTION_COUNT = 3


class InterviewMode(str, Enum):
    TIMED = "timed"
    UNTIMED = "untimed"

    @classmethod
    def parse(cls, value: Any) -> "InterviewMode":
        # anything not explicitly untimed runs timed
        return cls.UNTIMED if str(value or "").strip() == cls.UNTIMED.value else cls.TIMED


class InterviewStatus(str, Enum):
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class EndedReason(str, Enum):
    MANUAL = "manual"
    TIMEOUT = "timeout"
    ABANDONED = "abandoned"

    @classmethod
    def parse(cls, value: Any) -> "EndedReason":
        candidate = str(value or "").strip()
        for item in cls:
            if item.value == candidate:
                return item
        return cls.MANUAL

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        return str(value or "").strip() in {item.value for item in cls}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def from_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def new_id() -> str:
    return uuid.uuid4().hex


def clamp_question_count(value: Any, default: int = DEFAULT_QUESTION_COUNT) -> int:
    try:
        count = int(value)
    except (TypeError, ValueError):
        count = int(default or DEFAULT_QUESTION_COUNT)
    if count <= 0:
        count = int(default or DEFAULT_QUESTION_COUNT)
    return max(MIN_QUESTION_COUNT, min(MAX_QUESTION_COUNT, count))


def default_settings() -> dict[str, Any]:
    return {
        "notifications": True,
        "dark_mode": True,
        "preferred_question_count": DEFAULT_QUESTION_COUNT,
        "notification_email": "",
    }


def new_user(
    name: str,
    email: str,
    password_hash: str,
    role: str,
    experience_level: str,
    industry_mode: str | None = None,
) -> dict[str, Any]:
    return {
        "id": new_id(),
        "name": name,
        "email": str(email or "").strip().lower(),
        "password_hash": password_hash,
        "role": role,
        "experience_level": experience_level,
        "industry_mode": normalize_industry_mode(industry_mode).value,
        "streak_count": 0,
        "longest_streak": 0,
        "last_interview_date": None,
        "xp": 0,
        "level": 1,
        "badges": [],
        "settings": default_settings(),
    }


def new_question(question_text: str) -> dict[str, Any]:
    return {
        "id": new_id(),
        "question_text": str(question_text or "").strip(),
        "user_answer": "",
        "score": 0,
        "feedback": "",
        "strengths": [],
        "weaknesses": [],
        "improvement": "",
    }


def reset_question_evaluation(question: dict[str, Any]) -> None:
    question["score"] = 0
    question["feedback"] = ""
    question["strengths"] = []
    question["weaknesses"] = []
    question["improvement"] = ""


def apply_evaluation(question: dict[str, Any], evaluation: dict[str, Any]) -> None:
    question["score"] = evaluation.get("score") or 0
    question["feedback"] = evaluation.get("feedback") or ""
    question["strengths"] = list(evaluation.get("strengths") or [])
    question["weaknesses"] = list(evaluation.get("weaknesses") or [])
    question["improvement"] = evaluation.get("improvement") or ""


def new_interview(
    user_id: str,
    role: str,
    experience_level: str,
    industry_mode: IndustryMode,
    interview_mode: InterviewMode,
    per_question_time_seconds: int,
    question_texts: list[str],
) -> dict[str, Any]:
    return {
        "id": new_id(),
        "user_id": user_id,
        "role": role,
        "experience_level": experience_level,
        "industry_mode": industry_mode.value,
        "interview_mode": interview_mode.value,
        "per_question_time_seconds": int(per_question_time_seconds),
        "score": 0,
        "status": InterviewStatus.IN_PROGRESS.value,
        "ended_reason": None,
        "completed_at": None,
        "questions": [new_question(text) for text in question_texts],
        "overall_feedback": {
            "strengths": [],
            "weaknesses": [],
            "improvement_plan": "",
        },
    }


OVERALL_FEEDBACK_TEMPLATE = {
    "strengths": ["Communication"],
    "weaknesses": ["Review fundamental topics"],
    "improvement_plan": "Keep practicing daily.",
}


def answered_questions(interview: dict[str, Any]) -> list[dict[str, Any]]:
    return [q for q in interview.get("questions") or [] if str(q.get("user_answer") or "").strip()]


def is_completed(interview: dict[str, Any]) -> bool:
    return interview.get("status") == InterviewStatus.COMPLETED.value
