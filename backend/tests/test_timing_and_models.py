import pytest

from interview_pilot.industry_modes import IndustryMode, list_industry_modes, normalize_industry_mode
from interview_pilot.interview import timing
from interview_pilot.interview.scorer import calculate_average_score
from interview_pilot.models import (
    EndedReason,
    InterviewMode,
    clamp_question_count,
    new_interview,
    new_user,
)


@pytest.mark.parametrize(
    "experience, count, expected",
    [
        ("Fresher", 3, 165),
        ("1-3 years", 5, 210),
        ("3-5 years", 7, 280),
        ("5+ years", 6, 340),
        ("Principal", 4, 225),
    ],
)
def test_per_question_budget(experience, count, expected):
    assert timing.per_question_seconds(experience, count, InterviewMode.TIMED) == expected


def test_untimed_budget_is_zero():
    assert timing.per_question_seconds("5+ years", 3, InterviewMode.UNTIMED) == 0


def test_budget_is_clamped(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setitem(timing.BASE_SECONDS_BY_EXPERIENCE, "Intern", 60)
    monkeypatch.setitem(timing.BASE_SECONDS_BY_EXPERIENCE, "Staff", 600)

    assert timing.per_question_seconds("Intern", 3, InterviewMode.TIMED) == 120
    assert timing.per_question_seconds("Staff", 5, InterviewMode.TIMED) == 420


def test_question_count_clamp():
    assert clamp_question_count(8) == 7
    assert clamp_question_count(1) == 3
    assert clamp_question_count("5") == 5
    assert clamp_question_count(None) == 3
    assert clamp_question_count(0, default=4) == 4
    assert clamp_question_count("abc", default=6) == 6


def test_mode_and_reason_parsing():
    assert InterviewMode.parse("untimed") is InterviewMode.UNTIMED
    assert InterviewMode.parse("timed") is InterviewMode.TIMED
    assert InterviewMode.parse(None) is InterviewMode.TIMED
    assert InterviewMode.parse("relaxed") is InterviewMode.TIMED

    assert EndedReason.parse("timeout") is EndedReason.TIMEOUT
    assert EndedReason.parse("bogus") is EndedReason.MANUAL
    assert EndedReason.parse(None) is EndedReason.MANUAL
    assert EndedReason.is_valid("abandoned")
    assert not EndedReason.is_valid("quit")


def test_industry_mode_normalization():
    assert normalize_industry_mode("startup") is IndustryMode.STARTUP
    assert normalize_industry_mode("Unknown Corp") is IndustryMode.PRODUCT_COMPANY
    assert normalize_industry_mode(None) is IndustryMode.PRODUCT_COMPANY
    assert [item["id"] for item in list_industry_modes()] == ["Product company", "Service company", "Startup", "MNC"]


def test_new_user_defaults():
    user = new_user("Ada", "  Ada@Example.COM ", "hash", "Backend", "Fresher", "mnc")

    assert user["email"] == "ada@example.com"
    assert user["industry_mode"] == "MNC"
    assert user["level"] == 1
    assert user["xp"] == 0
    assert user["settings"] == {
        "notifications": True,
        "dark_mode": True,
        "preferred_question_count": 3,
        "notification_email": "",
    }


def test_average_score_over_answered_questions_only():
    interview = new_interview("u1", "Backend", "Fresher", IndustryMode.STARTUP, InterviewMode.TIMED, 165, ["a", "b", "c"])
    assert calculate_average_score(interview) == (0.0, 0)

    interview["questions"][0].update(user_answer="first", score=6)
    interview["questions"][1].update(user_answer="   ", score=9)
    interview["questions"][2].update(user_answer="third", score=9)

    assert calculate_average_score(interview) == (7.5, 2)
