from typing import Any

from interview_pilot.db.interviews_repo import InterviewRepository
from interview_pilot.gamification.engine import XP_PER_LEVEL
from interview_pilot.models import InterviewStatus
from interview_pilot.serializers import public_interview

RECENT_INTERVIEWS = 5


def _safe_float(value, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def level_progress(xp: int, level: int) -> dict[str, int]:
    current_level_xp = max(0, int(xp or 0) - (max(1, int(level or 1)) - 1) * XP_PER_LEVEL)
    return {
        "currentLevelXp": current_level_xp,
        "xpForNext": XP_PER_LEVEL,
        "progressPercent": min(100, round(current_level_xp / XP_PER_LEVEL * 100)),
    }


def build_dashboard_summary(user: dict[str, Any], interviews: InterviewRepository) -> dict[str, Any]:
    completed = interviews.list_for_user(
        user["id"],
        status=InterviewStatus.COMPLETED.value,
        limit=None,
    )

    total = len(completed)
    average = sum(_safe_float(row.get("score")) for row in completed) / total if total else 0.0
    strongest = max(completed, key=lambda row: _safe_float(row.get("score")), default=None)
    weakest = min(completed, key=lambda row: _safe_float(row.get("score")), default=None)

    return {
        "user": {
            "_id": user.get("id"),
            "name": user.get("name"),
            "role": user.get("role"),
            "experienceLevel": user.get("experience_level"),
            "industryMode": user.get("industry_mode"),
            "streakCount": int(user.get("streak_count") or 0),
            "longestStreak": int(user.get("longest_streak") or 0),
            "xp": int(user.get("xp") or 0),
            "level": int(user.get("level") or 1),
            "badges": list(user.get("badges") or []),
            "levelProgress": level_progress(user.get("xp") or 0, user.get("level") or 1),
        },
        "stats": {
            "totalInterviews": total,
            "averageScore": round(average, 2),
            "strongestRole": (strongest or {}).get("role") or "N/A",
            "weakestRole": (weakest or {}).get("role") or "N/A",
        },
        "recentInterviews": [public_interview(row) for row in completed[:RECENT_INTERVIEWS]],
    }
