import json
import logging

from interview_pilot.errors import QuestionGenerationError
from interview_pilot.services.llm_service import LLMService, strip_markdown_fences

logger = logging.getLogger("interview_pilot.interview.questions")

QUESTION_SYSTEM_PROMPT = "You are an expert technical interviewer."


def build_question_prompt(role: str, experience_level: str, count: int) -> str:
    return f"""Generate {count} backend/frontend/fullstack interview questions for a {role} role with {experience_level} of experience.
Include a mix of technical, scenario-based, and behavioral questions.
Return ONLY a valid JSON array of objects. Each object should have 'questionText' (string) and 'difficulty' (string: Easy, Medium, Hard). Do not wrap in markdown or anything else."""


def parse_questions(raw: str) -> list[str]:
    """Extract question texts from the model output; raises ValueError when unparseable."""
    text = strip_markdown_fences(raw)
    parsed = json.loads(text)

    if isinstance(parsed, list):
        items = parsed
    elif isinstance(parsed, dict):
        items = parsed.get("questions") or []
    else:
        items = []
    if not isinstance(items, list):
        raise ValueError("questions payload is not a list")

    questions: list[str] = []
    for item in items:
        if isinstance(item, dict):
            question_text = str(item.get("questionText") or "").strip()
        elif isinstance(item, str):
            question_text = item.strip()
        else:
            question_text = ""
        if question_text:
            questions.append(question_text)
    return questions


def generate_interview_questions(llm: LLMService, role: str, experience_level: str, count: int = 5) -> list[str]:
    try:
        raw = llm.complete(QUESTION_SYSTEM_PROMPT, build_question_prompt(role, experience_level, count), temperature=0.7)
    except Exception as exc:
        logger.error("question generation call failed | role=%s err=%s", role, exc)
        raise QuestionGenerationError("Failed to generate interview questions") from exc

    try:
        questions = parse_questions(raw)
    except (ValueError, TypeError) as exc:
        logger.error("question output unparseable | role=%s chars=%s", role, len(raw or ""))
        raise QuestionGenerationError("Failed to parse questions from AI") from exc

    if not questions:
        raise QuestionGenerationError("AI returned no interview questions")
    return questions
