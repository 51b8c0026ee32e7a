"""
Public JSON shapes.

Stored documents use snake_case keys; API responses use the camelCase names
the web client expects. Password hashes never leave this module.
"""

from typing import Any

from interview_pilot.models import DEFAULT_QUESTION_COUNT


def public_settings(settings: dict[str, Any] | None) -> dict[str, Any]:
    settings = settings or {}
    return {
        "notifications": bool(settings.get("notifications", True)),
        "darkMode": bool(settings.get("dark_mode", True)),
        "preferredQuestionCount": settings.get("preferred_question_count", DEFAULT_QUESTION_COUNT),
        "notificationEmail": settings.get("notification_email") or "",
    }


def public_user(user: dict[str, Any], token: str | None = None) -> dict[str, Any]:
    payload = {
        "_id": user.get("id"),
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role"),
        "experienceLevel": user.get("experience_level"),
        "industryMode": user.get("industry_mode"),
        "streakCount": int(user.get("streak_count") or 0),
        "longestStreak": int(user.get("longest_streak") or 0),
        "lastInterviewDate": user.get("last_interview_date"),
        "xp": int(user.get("xp") or 0),
        "level": int(user.get("level") or 1),
        "badges": list(user.get("badges") or []),
        "settings": public_settings(user.get("settings")),
    }
    if token is not None:
        payload["token"] = token
    return payload


def public_question(question: dict[str, Any]) -> dict[str, Any]:
    return {
        "_id": question.get("id"),
        "questionText": question.get("question_text") or "",
        "userAnswer": question.get("user_answer") or "",
        "score": question.get("score") or 0,
        "feedback": question.get("feedback") or "",
        "strengths": list(question.get("strengths") or []),
        "weaknesses": list(question.get("weaknesses") or []),
        "improvement": question.get("improvement") or "",
    }


def public_interview(interview: dict[str, Any]) -> dict[str, Any]:
    overall = interview.get("overall_feedback") or {}
    return {
        "_id": interview.get("id"),
        "user": interview.get("user_id"),
        "role": interview.get("role"),
        "experienceLevel": interview.get("experience_level"),
        "industryMode": interview.get("industry_mode"),
        "interviewMode": interview.get("interview_mode"),
        "perQuestionTimeSeconds": int(interview.get("per_question_time_seconds") or 0),
        "score": interview.get("score") or 0,
        "status": interview.get("status"),
        "endedReason": interview.get("ended_reason"),
        "completedAt": interview.get("completed_at"),
        "questions": [public_question(q) for q in interview.get("questions") or []],
        "overallFeedback": {
            "strengths": list(overall.get("strengths") or []),
            "weaknesses": list(overall.get("weaknesses") or []),
            "improvementPlan": overall.get("improvement_plan") or "",
        },
        "createdAt": interview.get("created_at"),
        "updatedAt": interview.get("updated_at"),
    }
