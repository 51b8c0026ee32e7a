import json
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DATABASE_URL", "memory://")
    monkeypatch.setenv("JWT_SECRET", "pytest-secret")
    monkeypatch.setenv("NVIDIA_NIM_API_KEY", "test-key")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    monkeypatch.setenv("STREAK_TIMEZONE", "UTC")
    for name in ("NVIDIA_API_KEY", "GOOGLE_CLIENT_ID", "RESEND_API_KEY", "RESEND_FROM_EMAIL", "CORS_ALLOW_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    from interview_pilot.system_metrics import reset_metrics

    reset_metrics()


class FakeLLM:
    """Stands in for LLMService: canned questions, scripted evaluations, canned transcripts."""

    def __init__(self):
        self.questions = [
            "Explain the event loop.",
            "How do you design a rate limiter?",
            "Tell me about a conflict you resolved.",
            "What is a database index?",
            "Describe CAP theorem.",
            "How would you debug a memory leak?",
            "Walk through a code review you gave.",
            "What is eventual consistency?",
        ]
        self.evaluation = {
            "score": 7,
            "feedback": "Solid answer.",
            "strengths": ["Clear"],
            "weaknesses": ["Brief"],
            "improvement": "Add an example.",
        }
        self.raw_question_output: str | None = None
        self.raw_evaluation_output: str | None = None
        self.fail_questions = False
        self.fail_evaluation = False
        self.transcript = "spoken answer"
        self.fail_transcription = False
        self.calls: list[dict] = []

    def complete(self, system: str, prompt: str, temperature: float = 0.4) -> str:
        from interview_pilot.interview.questions import QUESTION_SYSTEM_PROMPT

        self.calls.append({"system": system, "prompt": prompt, "temperature": temperature})
        if system == QUESTION_SYSTEM_PROMPT:
            if self.fail_questions:
                raise RuntimeError("provider down")
            if self.raw_question_output is not None:
                return self.raw_question_output
            return json.dumps([{"questionText": text, "difficulty": "Medium"} for text in self.questions])

        if self.fail_evaluation:
            raise RuntimeError("provider down")
        if self.raw_evaluation_output is not None:
            return self.raw_evaluation_output
        return json.dumps(self.evaluation)

    def transcribe(self, filename: str, content: bytes, content_type: str | None = None) -> str:
        self.calls.append({"transcribe": filename, "bytes": len(content)})
        if self.fail_transcription:
            raise RuntimeError("stt down")
        return self.transcript

    @property
    def evaluation_calls(self) -> list[dict]:
        from interview_pilot.interview.evaluator import EVALUATION_SYSTEM_PROMPT

        return [call for call in self.calls if call.get("system") == EVALUATION_SYSTEM_PROMPT]


class RecordingMailer:
    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    def send(self, to: str, subject: str, text: str) -> None:
        from interview_pilot.errors import EmailDeliveryError

        if self.fail:
            raise EmailDeliveryError("Email send failed: provider rejected")
        self.sent.append({"to": to, "subject": subject, "text": text})


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def settings():
    from interview_pilot.core.config import load_settings

    return load_settings()


@pytest.fixture
def store():
    from interview_pilot.db.store import DocumentStore

    return DocumentStore()


@pytest.fixture
def users_repo(store):
    from interview_pilot.db.users_repo import UserRepository

    return UserRepository(store)


@pytest.fixture
def interviews_repo(store):
    from interview_pilot.db.interviews_repo import InterviewRepository

    return InterviewRepository(store)


@pytest.fixture
def engine(interviews_repo, users_repo, fake_llm, mailer):
    from interview_pilot.interview.engine import InterviewEngine

    return InterviewEngine(interviews_repo, users_repo, fake_llm, mailer)


@pytest.fixture
def user(users_repo):
    from interview_pilot.models import new_user

    doc = new_user("Ada", "ada@example.com", "not-a-real-hash", "Backend", "3-5 years")
    users_repo.create(doc)
    return doc


@pytest.fixture
def app(settings, store, fake_llm, mailer):
    from interview_pilot.main import create_app

    return create_app(settings=settings, store=store, llm=fake_llm, mailer=mailer)


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app)


@pytest.fixture
def register(client):
    def _register(email: str = "ada@example.com", **overrides) -> dict:
        body = {
            "name": "Ada",
            "email": email,
            "password": "s3cret-pass",
            "role": "Backend",
            "experienceLevel": "3-5 years",
        }
        body.update(overrides)
        response = client.post("/api/users", json=body)
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def auth_headers(register) -> dict:
    payload = register()
    return {"Authorization": f"Bearer {payload['token']}"}
