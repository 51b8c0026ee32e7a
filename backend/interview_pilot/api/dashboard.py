from fastapi import APIRouter, Request

from interview_pilot.auth import get_current_user
from interview_pilot.dashboard.builder import build_dashboard_summary
from interview_pilot.db.interviews_repo import InterviewRepository

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary")
def dashboard_summary(request: Request):
    user = get_current_user(request)
    return build_dashboard_summary(user, InterviewRepository(request.app.state.store))
