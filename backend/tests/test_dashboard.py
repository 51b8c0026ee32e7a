from interview_pilot.dashboard.builder import build_dashboard_summary, level_progress
from interview_pilot.db.interviews_repo import INTERVIEWS
from interview_pilot.industry_modes import IndustryMode
from interview_pilot.models import InterviewMode, new_interview


def _completed(store, user_id, interview_id, role, score, updated_at):
    doc = new_interview(user_id, role, "Fresher", IndustryMode.MNC, InterviewMode.TIMED, 165, ["q1", "q2", "q3"])
    doc.update(id=interview_id, status="completed", score=score, updated_at=updated_at)
    store.put(INTERVIEWS, doc)


def test_level_progress():
    assert level_progress(0, 1) == {"currentLevelXp": 0, "xpForNext": 100, "progressPercent": 0}
    assert level_progress(175, 2) == {"currentLevelXp": 75, "xpForNext": 100, "progressPercent": 75}
    assert level_progress(50, 3)["currentLevelXp"] == 0


def test_empty_dashboard(user, interviews_repo):
    summary = build_dashboard_summary(user, interviews_repo)

    assert summary["stats"] == {"totalInterviews": 0, "averageScore": 0.0, "strongestRole": "N/A", "weakestRole": "N/A"}
    assert summary["recentInterviews"] == []
    assert summary["user"]["levelProgress"]["progressPercent"] == 0


def test_dashboard_aggregates_completed_interviews(user, store, interviews_repo):
    for index, (role, score) in enumerate([("Backend", 6.0), ("Data", 9.0), ("Frontend", 2.0), ("Backend", 7.333), ("QA", 5.0), ("SRE", 4.0)]):
        _completed(store, user["id"], f"i{index}", role, score, f"2024-01-0{index + 1}T00:00:00+00:00")
    live = new_interview(user["id"], "Ignored", "Fresher", IndustryMode.MNC, InterviewMode.TIMED, 165, ["q"])
    interviews_repo.create(live)

    summary = build_dashboard_summary(user, interviews_repo)

    assert summary["stats"]["totalInterviews"] == 6
    assert summary["stats"]["averageScore"] == 5.56
    assert summary["stats"]["strongestRole"] == "Data"
    assert summary["stats"]["weakestRole"] == "Frontend"
    assert [row["_id"] for row in summary["recentInterviews"]] == ["i5", "i4", "i3", "i2", "i1"]
