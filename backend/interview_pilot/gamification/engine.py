"""
Streak, XP, level and badge rules applied when an interview completes.

``apply_completion`` is pure: it takes the user's current gamification state
and returns the updated state plus the XP gained, without touching storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from interview_pilot.models import from_iso, to_iso

XP_PER_LEVEL = 100
MIN_XP_GAIN = 10
XP_PER_ANSWER = 5

BADGE_FIRST_STEPS = "First Steps"
BADGE_SHARP_THINKER = "Sharp Thinker"
BADGE_CONSISTENCY_CHAMP = "Consistency Champ"
BADGE_LEVEL_GRINDER = "Level Grinder"

SHARP_THINKER_MIN_SCORE = 8
CONSISTENCY_MIN_STREAK = 3
LEVEL_GRINDER_MIN_LEVEL = 5


@dataclass(frozen=True)
class GamificationState:
    streak_count: int = 0
    longest_streak: int = 0
    last_interview_date: datetime | None = None
    xp: int = 0
    level: int = 1
    badges: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CompletionOutcome:
    state: GamificationState
    xp_gain: int


def level_for_xp(xp: int) -> int:
    return max(1, int(xp) // XP_PER_LEVEL + 1)


def xp_gain_for(avg_score: float, answered_count: int) -> int:
    # half-up rounding; avg_score is never negative
    scaled = int(float(avg_score) * 10 + 0.5)
    return max(MIN_XP_GAIN, scaled + int(answered_count) * XP_PER_ANSWER)


def _calendar_day(value: datetime, tz: ZoneInfo) -> date:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).date()


def calendar_days_between(now: datetime, previous: datetime, tz: ZoneInfo | None = None) -> int:
    zone = tz or ZoneInfo("UTC")
    return (_calendar_day(now, zone) - _calendar_day(previous, zone)).days


def next_streak(current: int, now: datetime, previous: datetime | None, tz: ZoneInfo | None = None) -> int:
    if previous is None:
        return 1
    days = calendar_days_between(now, previous, tz)
    if days == 1:
        return int(current) + 1
    if days > 1:
        return 1
    return int(current)


def earned_badges(existing: tuple[str, ...], avg_score: float, streak_count: int, level: int) -> tuple[str, ...]:
    badges = list(existing)

    def _grant(label: str) -> None:
        if label not in badges:
            badges.append(label)

    _grant(BADGE_FIRST_STEPS)
    if avg_score >= SHARP_THINKER_MIN_SCORE:
        _grant(BADGE_SHARP_THINKER)
    if streak_count >= CONSISTENCY_MIN_STREAK:
        _grant(BADGE_CONSISTENCY_CHAMP)
    if level >= LEVEL_GRINDER_MIN_LEVEL:
        _grant(BADGE_LEVEL_GRINDER)
    return tuple(badges)


def apply_completion(
    state: GamificationState,
    now: datetime,
    avg_score: float,
    answered_count: int,
    tz: ZoneInfo | None = None,
) -> CompletionOutcome:
    streak = next_streak(state.streak_count, now, state.last_interview_date, tz)
    longest = max(int(state.longest_streak or 0), streak)
    gain = xp_gain_for(avg_score, answered_count)
    xp = int(state.xp or 0) + gain
    level = level_for_xp(xp)

    updated = replace(
        state,
        streak_count=streak,
        longest_streak=longest,
        last_interview_date=now,
        xp=xp,
        level=level,
        badges=earned_badges(tuple(state.badges), avg_score, streak, level),
    )
    return CompletionOutcome(state=updated, xp_gain=gain)


def state_from_user(user: dict[str, Any]) -> GamificationState:
    return GamificationState(
        streak_count=int(user.get("streak_count") or 0),
        longest_streak=int(user.get("longest_streak") or 0),
        last_interview_date=from_iso(user.get("last_interview_date")),
        xp=int(user.get("xp") or 0),
        level=int(user.get("level") or 1),
        badges=tuple(user.get("badges") or ()),
    )


def write_state_to_user(user: dict[str, Any], state: GamificationState) -> None:
    user["streak_count"] = state.streak_count
    user["longest_streak"] = state.longest_streak
    user["last_interview_date"] = to_iso(state.last_interview_date)
    user["xp"] = state.xp
    user["level"] = state.level
    user["badges"] = list(state.badges)
