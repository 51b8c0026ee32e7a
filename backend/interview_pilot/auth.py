import logging
import secrets
from datetime import timedelta
from typing import Any

import bcrypt
import httpx
from fastapi import Request
from jose import JWTError, jwt

from interview_pilot.core.config import Settings
from interview_pilot.db.users_repo import UserRepository
from interview_pilot.errors import AuthenticationFailed, NotFound, UpstreamError
from interview_pilot.models import utc_now

logger = logging.getLogger("interview_pilot.auth")

JWT_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 10
BCRYPT_MAX_BYTES = 72
GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"


def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return str(password or "").encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), str(password_hash).encode("utf-8"))
    except ValueError:
        return False


def random_password() -> str:
    return secrets.token_urlsafe(32)


def create_access_token(user_id: str, settings: Settings) -> str:
    expires_at = utc_now() + timedelta(days=settings.jwt_expires_days)
    return jwt.encode({"id": str(user_id), "exp": expires_at}, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> str:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        logger.info("token verification failed | err=%s", exc)
        raise AuthenticationFailed("Not authorized, token failed") from exc

    user_id = (payload or {}).get("id")
    if not user_id:
        raise AuthenticationFailed("Not authorized, token failed")
    return str(user_id)


def _request_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization") or ""
    if auth.startswith("Bearer "):
        token = auth.replace("Bearer ", "", 1).strip()
        if token:
            return token
    cookie_token = str(request.cookies.get("token") or "").strip()
    return cookie_token or None


def get_current_user(request: Request) -> dict[str, Any]:
    """Resolve the caller from the bearer header (or ``token`` cookie)."""
    token = _request_token(request)
    if not token:
        raise AuthenticationFailed("Not authorized, missing token")

    user_id = decode_access_token(token, request.app.state.settings)
    user = UserRepository(request.app.state.store).get(user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def verify_google_token(id_token: str, client_id: str, http_client: httpx.Client | None = None) -> dict[str, Any]:
    """Validate a Google ID token through the tokeninfo endpoint and return its claims."""
    try:
        if http_client is not None:
            response = http_client.get(GOOGLE_TOKENINFO_URL, params={"id_token": id_token})
        else:
            with httpx.Client(timeout=6.0) as client:
                response = client.get(GOOGLE_TOKENINFO_URL, params={"id_token": id_token})
    except httpx.HTTPError as exc:
        logger.error("google tokeninfo request failed | err=%s", exc)
        raise UpstreamError("Server error") from exc

    if response.status_code != 200:
        raise AuthenticationFailed("Invalid Google token")

    try:
        info = response.json()
    except ValueError as exc:
        raise AuthenticationFailed("Invalid Google token") from exc
    if not isinstance(info, dict):
        raise AuthenticationFailed("Invalid Google token")

    if info.get("aud") != client_id:
        raise AuthenticationFailed("Google token audience mismatch")
    if not info.get("email") or info.get("email_verified") != "true":
        raise AuthenticationFailed("Google email is not verified")
    return info
