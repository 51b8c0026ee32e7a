import logging
import re
from datetime import datetime
from typing import Any

import httpx

from interview_pilot.auth import hash_password, random_password, verify_google_token, verify_password
from interview_pilot.core.config import Settings
from interview_pilot.core.logger import log_event
from interview_pilot.db.users_repo import UserRepository
from interview_pilot.errors import (
    AuthenticationFailed,
    ConfigurationError,
    EmailDeliveryError,
    ValidationFailed,
)
from interview_pilot.industry_modes import DEFAULT_INDUSTRY_MODE, normalize_industry_mode
from interview_pilot.models import MAX_QUESTION_COUNT, MIN_QUESTION_COUNT, default_settings, new_user
from interview_pilot.services.email_service import Mailer

logger = logging.getLogger("interview_pilot.accounts")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
GOOGLE_DEFAULT_ROLE = "Frontend"
GOOGLE_DEFAULT_EXPERIENCE = "Fresher"
TEST_EMAIL_SUBJECT = "InterviewPilot notifications test"

# camelCase settings keys accepted on profile updates
_SETTINGS_FIELDS = {
    "notifications": "notifications",
    "darkMode": "dark_mode",
    "preferredQuestionCount": "preferred_question_count",
    "notificationEmail": "notification_email",
}


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def register_user(users: UserRepository, payload: dict[str, Any]) -> dict[str, Any]:
    name = _text(payload.get("name"))
    email = _text(payload.get("email")).lower()
    password = payload.get("password") if isinstance(payload.get("password"), str) else ""
    role = _text(payload.get("role"))
    experience_level = _text(payload.get("experienceLevel"))
    if not name or not email or not password or not role or not experience_level:
        raise ValidationFailed("Missing required fields")
    if users.email_taken(email):
        raise ValidationFailed("User already exists")

    user = new_user(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        experience_level=experience_level,
        industry_mode=_text(payload.get("industryMode")) or DEFAULT_INDUSTRY_MODE.value,
    )
    users.create(user)
    log_event("accounts", "registered", "", user_id=user["id"])
    return user


def login_user(users: UserRepository, payload: dict[str, Any]) -> dict[str, Any]:
    email = _text(payload.get("email")).lower()
    password = payload.get("password") if isinstance(payload.get("password"), str) else ""
    if not email or not password:
        raise ValidationFailed("Email and password are required")

    user = users.find_by_email(email)
    if user is None or not verify_password(password, user.get("password_hash") or ""):
        raise AuthenticationFailed("Invalid email or password")
    return user


def google_sign_in(
    users: UserRepository,
    settings: Settings,
    payload: dict[str, Any],
    http_client: httpx.Client | None = None,
) -> dict[str, Any]:
    """Verify a Google ID token and return the matching user, provisioning one on first sign-in."""
    id_token = _text(payload.get("idToken"))
    if not id_token:
        raise ValidationFailed("Google token is required")
    if not settings.google_enabled:
        raise ConfigurationError("Google auth is not configured")

    info = verify_google_token(id_token, settings.google_client_id, http_client=http_client)
    email = str(info["email"]).strip().lower()

    user = users.find_by_email(email)
    if user is not None:
        return user

    user = new_user(
        name=str(info.get("name") or "").strip() or email.split("@")[0],
        email=email,
        password_hash=hash_password(random_password()),
        role=GOOGLE_DEFAULT_ROLE,
        experience_level=GOOGLE_DEFAULT_EXPERIENCE,
        industry_mode=DEFAULT_INDUSTRY_MODE.value,
    )
    users.create(user)
    log_event("accounts", "google_provisioned", "", user_id=user["id"])
    return user


def _merge_settings(current: dict[str, Any] | None, incoming: dict[str, Any]) -> dict[str, Any]:
    merged = {**default_settings(), **(current or {})}
    for public_key, stored_key in _SETTINGS_FIELDS.items():
        if public_key in incoming:
            merged[stored_key] = incoming[public_key]

    count = incoming.get("preferredQuestionCount")
    if isinstance(count, (int, float)) and not isinstance(count, bool):
        merged["preferred_question_count"] = int(max(MIN_QUESTION_COUNT, min(MAX_QUESTION_COUNT, count)))
    else:
        merged["preferred_question_count"] = (current or {}).get(
            "preferred_question_count",
            default_settings()["preferred_question_count"],
        )
    return merged


def update_profile(users: UserRepository, user: dict[str, Any], payload: dict[str, Any]) -> dict[str, Any]:
    role = _text(payload.get("role"))
    experience_level = _text(payload.get("experienceLevel"))
    industry_mode = _text(payload.get("industryMode"))
    settings = payload.get("settings")

    if role:
        user["role"] = role
    if experience_level:
        user["experience_level"] = experience_level
    if industry_mode:
        user["industry_mode"] = normalize_industry_mode(industry_mode).value
    if isinstance(settings, dict):
        user["settings"] = _merge_settings(user.get("settings"), settings)

    users.save(user)
    return user


def send_test_email(mailer: Mailer, user: dict[str, Any], payload: dict[str, Any], now: datetime) -> str:
    """Send a notification test mail and return the address it went to."""
    requested = _text(payload.get("email")).lower()
    settings = user.get("settings") or {}
    to = requested or _text(settings.get("notification_email")) or _text(user.get("email"))
    if not to or not EMAIL_PATTERN.match(to):
        raise ValidationFailed("Please provide a valid email address.")

    text = f"This is a test notification from InterviewPilot sent at {now.strftime('%Y-%m-%d %H:%M:%S %Z')}."
    try:
        mailer.send(to, TEST_EMAIL_SUBJECT, text)
    except EmailDeliveryError as exc:
        logger.error("test email failed | to=%s err=%s", to, exc.message)
        raise
    log_event("email", "test_sent", "", user_id=user.get("id"))
    return to
