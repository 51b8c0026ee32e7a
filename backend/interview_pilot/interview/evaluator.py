import json
import logging
import re

from interview_pilot.errors import EvaluationError
from interview_pilot.services.llm_service import LLMService, strip_markdown_fences

logger = logging.getLogger("interview_pilot.interview.evaluator")

EVALUATION_SYSTEM_PROMPT = "You are an expert technical interviewer providing feedback."

FALLBACK_EVALUATION = {
    "score": 5,
    "feedback": "Your answer was recorded, but AI evaluation is temporarily unavailable. Retry in a moment for detailed feedback.",
    "strengths": ["Response submitted"],
    "weaknesses": ["Could not run automated analysis"],
    "improvement": "Review your answer structure and retry for AI-generated feedback.",
}


def fallback_evaluation() -> dict:
    return {
        **FALLBACK_EVALUATION,
        "strengths": list(FALLBACK_EVALUATION["strengths"]),
        "weaknesses": list(FALLBACK_EVALUATION["weaknesses"]),
        "fallback": True,
    }


def build_evaluation_prompt(question: str, answer: str) -> str:
    return f"""You are an expert technical interviewer. Evaluate the candidate's answer to the following question.
Question: "{question}"
Answer: "{answer}"

Provide a detailed evaluation in the following strict JSON format without any markdown wrapper:
{{
  "score": <number from 0 to 10>,
  "feedback": "<general feedback string>",
  "strengths": ["<strength 1>", "<strength 2>"],
  "weaknesses": ["<weakness 1>", "<weakness 2>"],
  "improvement": "<specific action to improve>"
}}"""


def _clamp_score(value) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return max(0, min(10, value))


def _string_list(value) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [str(item) for item in value]


def _non_blank(value) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _extract_json_dict(text: str) -> dict | None:
    text = strip_markdown_fences(text)
    if not text:
        return None

    try:
        parsed = json.loads(text)
        return parsed if isinstance(parsed, dict) else None
    except json.JSONDecodeError:
        pass

    match = re.search(r"\{[\s\S]*\}", text)
    if match:
        try:
            parsed = json.loads(match.group(0))
            return parsed if isinstance(parsed, dict) else None
        except json.JSONDecodeError:
            return None

    return None


def normalize_evaluation(data: dict) -> dict:
    """Field-by-field merge over the fallback payload."""
    score = _clamp_score(data.get("score"))
    strengths = _string_list(data.get("strengths"))
    weaknesses = _string_list(data.get("weaknesses"))
    return {
        "score": score if score is not None else FALLBACK_EVALUATION["score"],
        "feedback": _non_blank(data.get("feedback")) or FALLBACK_EVALUATION["feedback"],
        "strengths": strengths if strengths is not None else list(FALLBACK_EVALUATION["strengths"]),
        "weaknesses": weaknesses if weaknesses is not None else list(FALLBACK_EVALUATION["weaknesses"]),
        "improvement": _non_blank(data.get("improvement")) or FALLBACK_EVALUATION["improvement"],
        "fallback": False,
    }


def evaluate_answer(llm: LLMService, question: str, answer: str, strict: bool = True) -> dict:
    """
    Score one answer on a 0-10 scale.

    Unparseable model output yields the neutral fallback payload. A failed
    call raises EvaluationError when ``strict``; otherwise it also yields
    the fallback.
    """
    try:
        raw = llm.complete(EVALUATION_SYSTEM_PROMPT, build_evaluation_prompt(question, answer), temperature=0.2)
    except Exception as exc:
        logger.error("answer evaluation call failed | err=%s", exc)
        if strict:
            raise EvaluationError("Failed to evaluate answer") from exc
        return fallback_evaluation()

    parsed = _extract_json_dict(raw)
    if parsed is None:
        logger.warning("evaluation output unparseable, using fallback | chars=%s", len(raw or ""))
        return fallback_evaluation()
    return normalize_evaluation(parsed)
