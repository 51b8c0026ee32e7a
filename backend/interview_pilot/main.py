import asyncio
import logging
import os
import sys
import time

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from interview_pilot.api.dashboard import router as dashboard_router
from interview_pilot.api.interviews import router as interviews_router
from interview_pilot.api.users import router as users_router
from interview_pilot.auth import get_current_user
from interview_pilot.core.config import Settings, load_settings
from interview_pilot.core.logger import configure_logging
from interview_pilot.db.interviews_repo import InterviewRepository
from interview_pilot.db.store import DocumentStore
from interview_pilot.db.users_repo import UserRepository
from interview_pilot.errors import InterviewPilotError, UpstreamError
from interview_pilot.industry_modes import list_industry_modes
from interview_pilot.interview.engine import InterviewEngine
from interview_pilot.services.email_service import Mailer, ResendMailer
from interview_pilot.services.llm_service import LLMService
from interview_pilot.system_metrics import get_metrics_snapshot

logger = logging.getLogger("interview_pilot.main")


def _request_identity(request: Request) -> str:
    forwarded_for = str(request.headers.get("x-forwarded-for") or "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip() or "unknown"
    if request.client and request.client.host:
        return str(request.client.host)
    return "unknown"


class RateLimiter:
    """Fixed-window request counter per client identity."""

    def __init__(self, window_sec: int, max_requests: int):
        self.window_sec = window_sec
        self.max_requests = max_requests
        self._lock = asyncio.Lock()
        self._buckets: dict[str, dict[str, float]] = {}

    async def check(self, identity: str, now_ts: float) -> tuple[bool, int]:
        async with self._lock:
            bucket = self._buckets.get(identity)
            if bucket is None:
                self._buckets[identity] = {
                    "window_start": now_ts,
                    "count": 1,
                }
                return False, 0

            window_start = float(bucket.get("window_start") or now_ts)
            elapsed = now_ts - window_start
            if elapsed >= self.window_sec:
                bucket["window_start"] = now_ts
                bucket["count"] = 1
                return False, 0

            count = int(bucket.get("count") or 0)
            if count >= self.max_requests:
                retry_after = max(1, int(self.window_sec - elapsed))
                return True, retry_after

            bucket["count"] = count + 1

            if len(self._buckets) > 10000:
                stale_keys = [
                    key
                    for key, value in self._buckets.items()
                    if now_ts - float((value or {}).get("window_start") or now_ts) > (self.window_sec * 2)
                ]
                for key in stale_keys[:3000]:
                    self._buckets.pop(key, None)

            return False, 0


def create_app(
    settings: Settings | None = None,
    store: DocumentStore | None = None,
    llm: LLMService | None = None,
    mailer: Mailer | None = None,
    http_client: httpx.Client | None = None,
) -> FastAPI:
    """
    Build the API application.

    Collaborators default to the ones described by ``settings``; tests pass
    fakes. The document store is owned by the app and closed on shutdown.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    store = store or DocumentStore.from_url(settings.database_url)
    llm = llm or LLMService.from_settings(settings)
    mailer = mailer or ResendMailer.from_settings(settings, http_client=http_client)

    app = FastAPI(title="InterviewPilot API")
    app.state.settings = settings
    app.state.store = store
    app.state.mailer = mailer
    app.state.http_client = http_client
    app.state.engine = InterviewEngine(
        interviews=InterviewRepository(store),
        users=UserRepository(store),
        llm=llm,
        mailer=mailer,
        streak_timezone=settings.streak_timezone,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    limiter = RateLimiter(settings.rate_limit_window_sec, settings.rate_limit_max_requests)

    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        if not settings.rate_limit_enabled:
            return await call_next(request)

        path = request.url.path
        if request.method == "OPTIONS" or path.startswith("/docs") or path.startswith("/redoc") or path.startswith("/openapi.json"):
            return await call_next(request)

        blocked, retry_after = await limiter.check(_request_identity(request), time.time())
        if blocked:
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Rate limit exceeded",
                    "retry_after_sec": retry_after,
                },
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)

    @app.exception_handler(InterviewPilotError)
    async def interview_pilot_error_handler(request: Request, exc: InterviewPilotError):
        if isinstance(exc, UpstreamError):
            logger.error("upstream failure | path=%s err=%s cause=%r", request.url.path, exc.message, exc.__cause__)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.on_event("startup")
    async def startup_banner():
        logger.info("[SYSTEM] CORS allow_origins=%s", list(settings.cors_allow_origins))
        logger.info(
            "[SYSTEM] rate_limit enabled=%s window_sec=%s max_requests=%s",
            settings.rate_limit_enabled,
            settings.rate_limit_window_sec,
            settings.rate_limit_max_requests,
        )
        logger.info(
            "[SYSTEM] store persistent=%s google_auth=%s email=%s",
            store.persistent,
            settings.google_enabled,
            settings.email_configured,
        )

    @app.on_event("shutdown")
    async def shutdown_handler():
        store.close()
        logger.info("[SYSTEM] shutdown complete")

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok", "service": "interview-pilot"}

    @app.get("/api/industry-modes")
    def industry_modes_route():
        return {"items": list_industry_modes()}

    @app.get("/api/system/metrics")
    def system_metrics_route(request: Request):
        get_current_user(request)
        return get_metrics_snapshot(extra={
            "pid": os.getpid(),
            "python": sys.version.split(" ")[0],
        })

    app.include_router(users_router, prefix="/api")
    app.include_router(interviews_router, prefix="/api")
    app.include_router(dashboard_router, prefix="/api")
    return app


def run() -> None:
    uvicorn.run(
        "interview_pilot.main:create_app",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    run()
