from interview_pilot.models import InterviewMode

BASE_SECONDS_BY_EXPERIENCE = {
    "Fresher": 150,
    "1-3 years": 210,
    "3-5 years": 300,
    "5+ years": 360,
}
FALLBACK_BASE_SECONDS = 210
MIN_SECONDS_PER_QUESTION = 120
MAX_SECONDS_PER_QUESTION = 420
HEAVY_LOAD_QUESTIONS = 6
LIGHT_LOAD_QUESTIONS = 4


def question_load_adjustment(question_count: int) -> int:
    if question_count >= HEAVY_LOAD_QUESTIONS:
        return -20
    if question_count <= LIGHT_LOAD_QUESTIONS:
        return 15
    return 0


def per_question_seconds(experience_level: str, question_count: int, mode: InterviewMode) -> int:
    if mode is InterviewMode.UNTIMED:
        return 0
    base = BASE_SECONDS_BY_EXPERIENCE.get(str(experience_level or ""), FALLBACK_BASE_SECONDS)
    budget = base + question_load_adjustment(question_count)
    return max(MIN_SECONDS_PER_QUESTION, min(MAX_SECONDS_PER_QUESTION, budget))
