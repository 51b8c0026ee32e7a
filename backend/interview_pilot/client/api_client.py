import logging
from typing import Any

import httpx

logger = logging.getLogger("interview_pilot.client.api")

DEFAULT_TIMED_BUDGET_SECONDS = 180
BEST_EFFORT_TIMEOUT_SEC = 2.0


class ApiError(Exception):
    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


def normalize_interview(payload: dict[str, Any]) -> dict[str, Any]:
    """Client view of an interview: anything but ``untimed`` runs timed, and timed budgets are never zero."""
    data = dict(payload or {})
    data["interviewMode"] = "untimed" if data.get("interviewMode") == "untimed" else "timed"
    try:
        budget = int(data.get("perQuestionTimeSeconds") or 0)
    except (TypeError, ValueError):
        budget = 0
    data["perQuestionTimeSeconds"] = budget if budget > 0 else DEFAULT_TIMED_BUDGET_SECONDS
    return data


class InterviewPilotClient:
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        http_client: httpx.Client | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._client = http_client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "InterviewPilotClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _request(self, method: str, path: str, **kwargs) -> Any:
        response = self._client.request(method, path, headers=self._headers(), **kwargs)
        if response.is_error:
            try:
                detail = response.json().get("detail")
            except (ValueError, AttributeError):
                detail = None
            raise ApiError(response.status_code, str(detail or response.reason_phrase or "Request failed"))
        return response.json()

    def _remember_token(self, payload: dict[str, Any]) -> dict[str, Any]:
        token = payload.get("token")
        if token:
            self.token = token
        return payload

    def register(self, **fields) -> dict[str, Any]:
        return self._remember_token(self._request("POST", "/api/users", json=fields))

    def login(self, email: str, password: str) -> dict[str, Any]:
        return self._remember_token(self._request("POST", "/api/users/login", json={"email": email, "password": password}))

    def profile(self) -> dict[str, Any]:
        return self._request("GET", "/api/users/profile")

    def update_profile(self, **fields) -> dict[str, Any]:
        return self._request("PATCH", "/api/users/profile", json=fields)

    def dashboard(self) -> dict[str, Any]:
        return self._request("GET", "/api/dashboard/summary")

    def start_interview(
        self,
        role: str,
        experience_level: str,
        industry_mode: str | None = None,
        question_count: int | None = None,
        interview_mode: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"role": role, "experienceLevel": experience_level}
        if industry_mode:
            body["industryMode"] = industry_mode
        if question_count is not None:
            body["questionCount"] = question_count
        if interview_mode:
            body["interviewMode"] = interview_mode
        return self._request("POST", "/api/interviews/start", json=body)

    def get_interview(self, interview_id: str) -> dict[str, Any]:
        return normalize_interview(self._request("GET", f"/api/interviews/{interview_id}"))

    def list_interviews(self, status: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        params: dict[str, Any] = {}
        if status:
            params["status"] = status
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", "/api/interviews", params=params)

    def submit_answer(self, interview_id: str, question_id: str, answer_text: str) -> dict[str, Any]:
        return self._request(
            "POST",
            f"/api/interviews/{interview_id}/answer",
            json={"questionId": question_id, "answerText": answer_text},
        )

    def finish(self, interview_id: str, reason: str = "manual") -> dict[str, Any]:
        return self._request("POST", f"/api/interviews/{interview_id}/finish", json={"endedReason": reason})

    def finish_best_effort(self, interview_id: str, reason: str = "abandoned") -> bool:
        """Fire-and-forget finish with the reason in the query string; never raises."""
        try:
            response = self._client.post(
                f"/api/interviews/{interview_id}/finish",
                params={"endedReason": reason},
                headers=self._headers(),
                timeout=BEST_EFFORT_TIMEOUT_SEC,
            )
        except httpx.HTTPError as exc:
            logger.debug("best-effort finish dropped | interview=%s err=%s", interview_id, exc)
            return False
        return not response.is_error

    def transcribe(self, interview_id: str, audio: bytes, filename: str = "recording.webm") -> str:
        payload = self._request(
            "POST",
            f"/api/interviews/{interview_id}/speech-to-text",
            files={"audio": (filename, audio, "audio/webm")},
        )
        return str(payload.get("text") or "")
