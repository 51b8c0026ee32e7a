from typing import Any

from interview_pilot.models import EndedReason


def _score_text(value: Any) -> str:
    try:
        return f"{float(value or 0):.1f}"
    except (TypeError, ValueError):
        return "0.0"


def _question_block(index: int, question: dict[str, Any]) -> str:
    answered = bool(str(question.get("user_answer") or "").strip())
    feedback = str(question.get("feedback") or "").strip() or "No feedback available."
    return "\n".join(
        [
            f"{index}. {question.get('question_text') or ''}",
            f"Status: {'Answered' if answered else 'Not answered'}",
            f"Score: {_score_text(question.get('score'))}/10",
            f"Feedback: {feedback}",
        ]
    )


def compose_summary_email(
    interview: dict[str, Any],
    avg_score: float,
    answered_count: int,
    ended_reason: EndedReason,
) -> tuple[str, str]:
    """Return ``(subject, body)`` for the plaintext completion summary."""
    questions = interview.get("questions") or []
    outcome = "submitted" if ended_reason is EndedReason.MANUAL else f"ended ({ended_reason.value})"

    subject = f"InterviewPilot Test Summary - {interview.get('role')} ({_score_text(avg_score)}/10)"
    lines = [
        f"Your interview was {outcome}.",
        f"Role: {interview.get('role')}",
        f"Experience: {interview.get('experience_level')}",
        f"Industry: {interview.get('industry_mode')}",
        f"Mode: {interview.get('interview_mode')}",
        f"Attempted Questions: {answered_count}/{len(questions)}",
        f"Final Score: {_score_text(avg_score)}/10",
        "",
        "Per-question analysis:",
    ]
    lines.extend(_question_block(index, question) for index, question in enumerate(questions, start=1))
    return subject, "\n".join(lines)


def summary_recipient(user: dict[str, Any]) -> str | None:
    """Override email if set, else the account email; None when notifications are off."""
    settings = user.get("settings") or {}
    if not settings.get("notifications", True):
        return None
    destination = str(settings.get("notification_email") or "").strip() or str(user.get("email") or "").strip()
    return destination or None
