import json

import httpx
import pytest

from interview_pilot.errors import EmailDeliveryError
from interview_pilot.industry_modes import IndustryMode
from interview_pilot.interview.summary import compose_summary_email, summary_recipient
from interview_pilot.models import EndedReason, InterviewMode, new_interview
from interview_pilot.services.email_service import RESEND_API_URL, ResendMailer


def _interview() -> dict:
    interview = new_interview("u1", "Backend", "1-3 years", IndustryMode.STARTUP, InterviewMode.TIMED, 210, ["What is REST?", "What is gRPC?"])
    interview["questions"][0].update(user_answer="Resources over HTTP", score=8, feedback="Good coverage.")
    return interview


def test_summary_for_manual_submission():
    subject, body = compose_summary_email(_interview(), 8.0, 1, EndedReason.MANUAL)

    assert subject == "InterviewPilot Test Summary - Backend (8.0/10)"
    assert body.splitlines()[:9] == [
        "Your interview was submitted.",
        "Role: Backend",
        "Experience: 1-3 years",
        "Industry: Startup",
        "Mode: timed",
        "Attempted Questions: 1/2",
        "Final Score: 8.0/10",
        "",
        "Per-question analysis:",
    ]
    assert "1. What is REST?\nStatus: Answered\nScore: 8.0/10\nFeedback: Good coverage." in body
    assert "2. What is gRPC?\nStatus: Not answered\nScore: 0.0/10\nFeedback: No feedback available." in body


def test_summary_for_non_manual_endings():
    _, body = compose_summary_email(_interview(), 8.0, 1, EndedReason.ABANDONED)

    assert body.startswith("Your interview was ended (abandoned).")


def test_summary_recipient():
    user = {"email": "ada@example.com", "settings": {"notifications": True, "notification_email": ""}}
    assert summary_recipient(user) == "ada@example.com"

    user["settings"]["notification_email"] = "alerts@example.com"
    assert summary_recipient(user) == "alerts@example.com"

    user["settings"]["notifications"] = False
    assert summary_recipient(user) is None


def test_resend_mailer_posts_plain_text_payload():
    captured = {}

    def _handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "email-1"})

    mailer = ResendMailer("re_key", "pilot@example.com", http_client=httpx.Client(transport=httpx.MockTransport(_handler)))
    mailer.send("ada@example.com", "Hello", "Body text")

    assert captured["url"] == RESEND_API_URL
    assert captured["auth"] == "Bearer re_key"
    assert captured["body"] == {
        "from": "pilot@example.com",
        "to": ["ada@example.com"],
        "subject": "Hello",
        "text": "Body text",
    }


def test_resend_mailer_surfaces_provider_errors():
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, text="invalid from address")

    mailer = ResendMailer("re_key", "pilot@example.com", http_client=httpx.Client(transport=httpx.MockTransport(_handler)))

    with pytest.raises(EmailDeliveryError, match="invalid from address"):
        mailer.send("ada@example.com", "Hello", "Body")


def test_unconfigured_mailer_fails_at_send_time():
    mailer = ResendMailer("", "")

    assert not mailer.configured
    with pytest.raises(EmailDeliveryError, match="not configured"):
        mailer.send("ada@example.com", "Hello", "Body")
