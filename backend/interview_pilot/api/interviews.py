import asyncio

from fastapi import APIRouter, File, Request, UploadFile

from interview_pilot.auth import get_current_user
from interview_pilot.errors import ValidationFailed
from interview_pilot.interview import engine as interview_engine
from interview_pilot.interview.engine import InterviewEngine
from interview_pilot.models import EndedReason
from interview_pilot.serializers import public_interview, public_question

router = APIRouter(prefix="/interviews", tags=["interviews"])


def _engine(request: Request) -> InterviewEngine:
    return request.app.state.engine


@router.get("")
def list_interviews(request: Request, status: str | None = None, limit: str | None = None):
    user = get_current_user(request)
    rows = _engine(request).list_interviews(user["id"], status=status, limit=limit)
    return [public_interview(row) for row in rows]


@router.post("/start", status_code=201)
def start_interview(payload: dict, request: Request):
    user = get_current_user(request)
    interview = _engine(request).start(
        user,
        role=payload.get("role"),
        experience_level=payload.get("experienceLevel"),
        industry_mode=payload.get("industryMode"),
        question_count=payload.get("questionCount"),
        interview_mode=payload.get("interviewMode"),
    )
    return public_interview(interview)


@router.get("/{interview_id}")
def get_interview(interview_id: str, request: Request):
    user = get_current_user(request)
    return public_interview(_engine(request).get(interview_id, user["id"]))


@router.post("/{interview_id}/answer")
def submit_answer(interview_id: str, request: Request, payload: dict | None = None):
    user = get_current_user(request)
    payload = payload or {}
    question_id = payload.get("questionId")
    interview = _engine(request).submit_answer(interview_id, user["id"], question_id, payload.get("answerText"))
    question = next(q for q in interview["questions"] if q["id"] == str(question_id).strip())
    return public_question(question)


async def _tolerant_json(request: Request) -> dict:
    # keepalive and beacon posts may carry a non-JSON body
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


@router.post("/{interview_id}/finish")
async def finish_interview(interview_id: str, request: Request, endedReason: str | None = None):
    user = get_current_user(request)
    reason = endedReason
    if not EndedReason.is_valid(reason):
        reason = (await _tolerant_json(request)).get("endedReason")
    result = await asyncio.to_thread(_engine(request).finish, interview_id, user["id"], reason)

    if result.already_completed:
        return {
            "interview": public_interview(result.interview),
            "message": "Interview already completed",
        }

    state = result.outcome.state
    return {
        "interview": public_interview(result.interview),
        "gamification": {
            "xpGain": result.outcome.xp_gain,
            "streakCount": state.streak_count,
            "longestStreak": state.longest_streak,
            "level": state.level,
            "xp": state.xp,
            "badges": list(state.badges),
        },
    }


@router.post("/{interview_id}/speech-to-text")
async def speech_to_text(interview_id: str, request: Request, audio: UploadFile | None = File(None)):
    user = get_current_user(request)
    if audio is None or not audio.filename:
        raise ValidationFailed("Valid audio file is required")

    engine = _engine(request)
    engine.get(interview_id, user["id"])
    max_bytes = interview_engine.MAX_AUDIO_BYTES
    if audio.size is not None and audio.size > max_bytes:
        raise ValidationFailed(interview_engine.AUDIO_TOO_LARGE_MESSAGE)

    content = await audio.read(max_bytes + 1)
    text = await asyncio.to_thread(
        engine.transcribe,
        interview_id,
        user["id"],
        audio.filename,
        content,
        audio.content_type,
    )
    return {"text": text}
