from interview_pilot.models import answered_questions


def _safe_float(value, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def calculate_average_score(interview: dict) -> tuple[float, int]:
    """Mean score over answered questions, and how many were answered. Zero answers score 0."""
    answered = answered_questions(interview)
    if not answered:
        return 0.0, 0

    total = sum(max(0.0, min(10.0, _safe_float(q.get("score")))) for q in answered)
    return total / len(answered), len(answered)
