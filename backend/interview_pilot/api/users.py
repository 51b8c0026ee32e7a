from fastapi import APIRouter, Request

from interview_pilot.accounts import (
    google_sign_in,
    login_user,
    register_user,
    send_test_email,
    update_profile,
)
from interview_pilot.auth import create_access_token, get_current_user
from interview_pilot.db.users_repo import UserRepository
from interview_pilot.models import utc_now
from interview_pilot.serializers import public_user

router = APIRouter(prefix="/users", tags=["users"])


def _users(request: Request) -> UserRepository:
    return UserRepository(request.app.state.store)


def _with_token(request: Request, user: dict) -> dict:
    return public_user(user, token=create_access_token(user["id"], request.app.state.settings))


@router.post("", status_code=201)
def register(payload: dict, request: Request):
    user = register_user(_users(request), payload)
    return _with_token(request, user)


@router.post("/login")
def login(payload: dict, request: Request):
    user = login_user(_users(request), payload)
    return _with_token(request, user)


@router.post("/google")
def google_login(payload: dict, request: Request):
    user = google_sign_in(
        _users(request),
        request.app.state.settings,
        payload,
        http_client=request.app.state.http_client,
    )
    return _with_token(request, user)


@router.get("/profile")
def get_profile(request: Request):
    return public_user(get_current_user(request))


@router.patch("/profile")
def patch_profile(request: Request, payload: dict | None = None):
    user = get_current_user(request)
    return public_user(update_profile(_users(request), user, payload or {}))


@router.post("/settings/test-email")
def settings_test_email(request: Request, payload: dict | None = None):
    user = get_current_user(request)
    to = send_test_email(request.app.state.mailer, user, payload or {}, utc_now())
    return {"message": f"Test email sent to {to}."}
