import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from interview_pilot.errors import ConfigurationError

_BACKEND_ROOT = Path(__file__).resolve().parents[2]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=False)

DEFAULT_NIM_BASE_URL = "https://integrate.api.nvidia.com/v1"
DEFAULT_NIM_MODEL = "meta/llama-3.1-70b-instruct"
DEFAULT_NIM_STT_MODEL = "openai/whisper-large-v3"


def _env_str(name: str, default: str = "") -> str:
    return str(os.getenv(name) or default).strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, minimum: int) -> int:
    try:
        value = int(os.getenv(name) or default)
    except ValueError:
        value = default
    return max(minimum, value)


@dataclass(frozen=True)
class Settings:
    database_url: str
    jwt_secret: str
    jwt_expires_days: int
    llm_api_key: str
    llm_base_url: str
    llm_model: str
    stt_model: str
    stt_language: str
    resend_api_key: str
    resend_from_email: str
    google_client_id: str
    streak_timezone: str
    cors_allow_origins: tuple[str, ...]
    rate_limit_enabled: bool
    rate_limit_window_sec: int
    rate_limit_max_requests: int
    log_level: str

    @property
    def google_enabled(self) -> bool:
        return bool(self.google_client_id)

    @property
    def email_configured(self) -> bool:
        return bool(self.resend_api_key and self.resend_from_email)


def _cors_origins() -> tuple[str, ...]:
    raw = _env_str("CORS_ALLOW_ORIGINS")
    if not raw:
        return (
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        )
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def load_settings() -> Settings:
    """Read settings from the environment; raises ConfigurationError for missing required values."""
    database_url = _env_str("DATABASE_URL")
    if not database_url:
        raise ConfigurationError("DATABASE_URL environment variable is required")

    jwt_secret = _env_str("JWT_SECRET")
    if not jwt_secret:
        raise ConfigurationError("JWT_SECRET environment variable is required")

    llm_api_key = _env_str("NVIDIA_NIM_API_KEY") or _env_str("NVIDIA_API_KEY")
    if not llm_api_key:
        raise ConfigurationError("NVIDIA_NIM_API_KEY (or NVIDIA_API_KEY) environment variable is required")

    return Settings(
        database_url=database_url,
        jwt_secret=jwt_secret,
        jwt_expires_days=_env_int("JWT_EXPIRES_DAYS", 30, 1),
        llm_api_key=llm_api_key,
        llm_base_url=_env_str("NVIDIA_NIM_BASE_URL", DEFAULT_NIM_BASE_URL),
        llm_model=_env_str("NVIDIA_NIM_MODEL", DEFAULT_NIM_MODEL),
        stt_model=_env_str("NVIDIA_NIM_STT_MODEL", DEFAULT_NIM_STT_MODEL),
        stt_language=_env_str("NVIDIA_NIM_STT_LANGUAGE"),
        resend_api_key=_env_str("RESEND_API_KEY"),
        resend_from_email=_env_str("RESEND_FROM_EMAIL"),
        google_client_id=_env_str("GOOGLE_CLIENT_ID"),
        streak_timezone=_env_str("STREAK_TIMEZONE", "UTC"),
        cors_allow_origins=_cors_origins(),
        rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
        rate_limit_window_sec=_env_int("RATE_LIMIT_WINDOW_SEC", 60, 10),
        rate_limit_max_requests=_env_int("RATE_LIMIT_MAX_REQUESTS", 300, 20),
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
    )
