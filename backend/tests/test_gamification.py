from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from interview_pilot.gamification.engine import (
    BADGE_CONSISTENCY_CHAMP,
    BADGE_FIRST_STEPS,
    BADGE_LEVEL_GRINDER,
    BADGE_SHARP_THINKER,
    GamificationState,
    apply_completion,
    calendar_days_between,
    level_for_xp,
    state_from_user,
    write_state_to_user,
    xp_gain_for,
)


NOW = datetime(2024, 3, 10, 15, 0, tzinfo=timezone.utc)


def test_first_completion_starts_streak_and_grants_first_steps():
    outcome = apply_completion(GamificationState(), NOW, avg_score=6.0, answered_count=3)

    assert outcome.state.streak_count == 1
    assert outcome.state.longest_streak == 1
    assert outcome.state.last_interview_date == NOW
    assert outcome.xp_gain == 75
    assert outcome.state.xp == 75
    assert outcome.state.level == 1
    assert outcome.state.badges == (BADGE_FIRST_STEPS,)


def test_xp_scenario_crosses_level_boundary():
    state = GamificationState(xp=95, level=1, streak_count=1, longest_streak=1, last_interview_date=NOW - timedelta(days=1))

    outcome = apply_completion(state, NOW, avg_score=7.0, answered_count=2)

    assert outcome.xp_gain == 80
    assert outcome.state.xp == 175
    assert outcome.state.level == 2


def test_xp_gain_has_floor_and_rounds_half_up():
    assert xp_gain_for(0.0, 0) == 10
    assert xp_gain_for(0.4, 0) == 10
    assert xp_gain_for(6.25, 0) == 63
    assert xp_gain_for(8.0, 4) == 100


def test_level_for_xp():
    assert level_for_xp(0) == 1
    assert level_for_xp(99) == 1
    assert level_for_xp(100) == 2
    assert level_for_xp(450) == 5


def test_streak_increments_on_next_calendar_day_even_under_24_hours():
    previous = datetime(2024, 3, 9, 23, 30, tzinfo=timezone.utc)
    now = datetime(2024, 3, 10, 0, 10, tzinfo=timezone.utc)
    state = GamificationState(streak_count=2, longest_streak=2, last_interview_date=previous)

    outcome = apply_completion(state, now, avg_score=5.0, answered_count=1)

    assert outcome.state.streak_count == 3
    assert outcome.state.longest_streak == 3


def test_same_day_completion_leaves_streak_unchanged():
    state = GamificationState(streak_count=4, longest_streak=6, last_interview_date=NOW - timedelta(hours=5))

    outcome = apply_completion(state, NOW, avg_score=5.0, answered_count=1)

    assert outcome.state.streak_count == 4
    assert outcome.state.longest_streak == 6


def test_gap_of_two_days_resets_streak():
    state = GamificationState(streak_count=5, longest_streak=5, last_interview_date=NOW - timedelta(days=2))

    outcome = apply_completion(state, NOW, avg_score=5.0, answered_count=1)

    assert outcome.state.streak_count == 1
    assert outcome.state.longest_streak == 5


def test_calendar_days_follow_configured_timezone():
    previous = datetime(2024, 1, 1, 23, 30, tzinfo=timezone.utc)
    now = datetime(2024, 1, 2, 0, 30, tzinfo=timezone.utc)

    assert calendar_days_between(now, previous) == 1
    assert calendar_days_between(now, previous, ZoneInfo("America/New_York")) == 0


def test_badges_are_additive_and_never_duplicated():
    state = GamificationState(
        streak_count=2,
        longest_streak=2,
        last_interview_date=NOW - timedelta(days=1),
        xp=390,
        level=4,
        badges=(BADGE_FIRST_STEPS, "Legacy Badge"),
    )

    outcome = apply_completion(state, NOW, avg_score=8.0, answered_count=2)

    assert outcome.state.streak_count == 3
    assert outcome.state.level == 5
    assert outcome.state.badges == (
        BADGE_FIRST_STEPS,
        "Legacy Badge",
        BADGE_SHARP_THINKER,
        BADGE_CONSISTENCY_CHAMP,
        BADGE_LEVEL_GRINDER,
    )


def test_invariants_hold_across_a_sequence_of_sessions():
    state = GamificationState()
    moments = [NOW + timedelta(days=offset) for offset in (0, 1, 1, 2, 5, 6, 7, 8)]
    for index, moment in enumerate(moments):
        state = apply_completion(state, moment, avg_score=(index % 11), answered_count=index % 4).state
        assert state.level == state.xp // 100 + 1
        assert state.longest_streak >= state.streak_count


def test_user_document_round_trip():
    user = {"streak_count": 2, "longest_streak": 3, "last_interview_date": "2024-03-09T10:00:00+00:00", "xp": 40, "level": 1, "badges": ["First Steps"]}

    state = state_from_user(user)
    assert state.last_interview_date == datetime(2024, 3, 9, 10, 0, tzinfo=timezone.utc)

    outcome = apply_completion(state, NOW, avg_score=9.0, answered_count=3)
    write_state_to_user(user, outcome.state)

    assert user["streak_count"] == 3
    assert user["last_interview_date"] == NOW.isoformat()
    assert user["xp"] == 40 + 105
    assert user["level"] == 2
    assert user["badges"] == ["First Steps", BADGE_SHARP_THINKER, BADGE_CONSISTENCY_CHAMP]
