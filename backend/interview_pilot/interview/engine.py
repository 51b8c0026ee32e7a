"""
Interview session lifecycle: start, answer, finish and the abandon sweep.

Timed interviews store answers unscored and evaluate them all at finish;
untimed interviews evaluate each answer as it arrives. Completion is
idempotent and is the only point where gamification and the summary email
run.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from interview_pilot.core.logger import log_event
from interview_pilot.db.interviews_repo import InterviewRepository, clamp_list_limit
from interview_pilot.db.users_repo import UserRepository
from interview_pilot.errors import (
    NotAuthorized,
    NotFound,
    QuestionGenerationError,
    StateConflict,
    TranscriptionError,
    ValidationFailed,
)
from interview_pilot.gamification.engine import (
    CompletionOutcome,
    apply_completion,
    state_from_user,
    write_state_to_user,
)
from interview_pilot.industry_modes import normalize_industry_mode
from interview_pilot.interview.evaluator import evaluate_answer
from interview_pilot.interview.questions import generate_interview_questions
from interview_pilot.interview.scorer import calculate_average_score
from interview_pilot.interview.summary import compose_summary_email, summary_recipient
from interview_pilot.interview.timing import per_question_seconds
from interview_pilot.models import (
    OVERALL_FEEDBACK_TEMPLATE,
    EndedReason,
    InterviewMode,
    InterviewStatus,
    apply_evaluation,
    clamp_question_count,
    is_completed,
    new_interview,
    reset_question_evaluation,
    to_iso,
    utc_now,
)
from interview_pilot.services.email_service import Mailer
from interview_pilot.services.llm_service import LLMService
from interview_pilot.system_metrics import (
    increment_metric,
    observe_evaluation_latency_ms,
    record_finish,
)

logger = logging.getLogger("interview_pilot.interview.engine")

MAX_AUDIO_BYTES = 20 * 1024 * 1024
AUDIO_TOO_LARGE_MESSAGE = "Audio file is too large. Please upload a file under 20MB."


@dataclass(frozen=True)
class FinishResult:
    interview: dict[str, Any]
    outcome: CompletionOutcome | None = None
    already_completed: bool = False


class InterviewEngine:
    def __init__(
        self,
        interviews: InterviewRepository,
        users: UserRepository,
        llm: LLMService,
        mailer: Mailer,
        streak_timezone: str = "UTC",
    ):
        self.interviews = interviews
        self.users = users
        self.llm = llm
        self.mailer = mailer
        self.tz = ZoneInfo(streak_timezone or "UTC")

    def _owned(self, interview_id: str, user_id: str) -> dict[str, Any]:
        interview = self.interviews.get(interview_id)
        if interview is None:
            raise NotFound("Interview not found")
        if interview.get("user_id") != user_id:
            raise NotAuthorized("Not authorized")
        return interview

    def _evaluate(self, question: dict[str, Any], strict: bool) -> dict[str, Any]:
        started = time.perf_counter()
        evaluation = evaluate_answer(self.llm, question["question_text"], question["user_answer"], strict=strict)
        observe_evaluation_latency_ms((time.perf_counter() - started) * 1000.0)
        increment_metric("evaluations_total")
        if evaluation.get("fallback"):
            increment_metric("evaluation_fallbacks")
        return evaluation

    def start(
        self,
        user: dict[str, Any],
        role: str,
        experience_level: str,
        industry_mode: str | None = None,
        question_count: Any = None,
        interview_mode: Any = None,
    ) -> dict[str, Any]:
        role = str(role or "").strip()
        experience_level = str(experience_level or "").strip()
        if not role or not experience_level:
            raise ValidationFailed("Role and experience level are required")

        preferred = (user.get("settings") or {}).get("preferred_question_count")
        total_questions = clamp_question_count(
            question_count if question_count is not None else preferred,
            default=clamp_question_count(preferred),
        )
        mode = InterviewMode.parse(interview_mode)
        industry = normalize_industry_mode(industry_mode or user.get("industry_mode"))
        budget = per_question_seconds(experience_level, total_questions, mode)

        try:
            question_texts = generate_interview_questions(
                self.llm,
                f"{role} ({industry.value})",
                experience_level,
                total_questions,
            )
        except QuestionGenerationError as exc:
            logger.error("interview start failed | user=%s err=%s", user.get("id"), exc.message)
            raise QuestionGenerationError("Failed to start interview") from exc

        interview = new_interview(
            user_id=user["id"],
            role=role,
            experience_level=experience_level,
            industry_mode=industry,
            interview_mode=mode,
            per_question_time_seconds=budget,
            question_texts=question_texts[:total_questions],
        )
        self.interviews.create(interview)
        increment_metric("interviews_started")
        log_event(
            "interview",
            "started",
            interview["id"],
            user_id=user["id"],
            mode=mode.value,
            questions=len(interview["questions"]),
            per_question_time_seconds=budget,
        )
        return interview

    def get(self, interview_id: str, user_id: str) -> dict[str, Any]:
        return self._owned(interview_id, user_id)

    def submit_answer(self, interview_id: str, user_id: str, question_id: Any, answer_text: Any) -> dict[str, Any]:
        question_id = str(question_id or "").strip()
        answer_text = str(answer_text or "")
        if not question_id or not answer_text.strip():
            raise ValidationFailed("Question ID and answer text are required")

        interview = self._owned(interview_id, user_id)
        if is_completed(interview):
            raise StateConflict("Interview already completed")

        question = next((q for q in interview["questions"] if q.get("id") == question_id), None)
        if question is None:
            raise NotFound("Question not found")

        question["user_answer"] = answer_text
        reset_question_evaluation(question)
        # raw answer is stored before any evaluation runs
        self.interviews.save(interview)
        increment_metric("answers_submitted")

        mode = InterviewMode.parse(interview.get("interview_mode"))
        if mode is InterviewMode.UNTIMED:
            evaluation = self._evaluate(question, strict=True)
            apply_evaluation(question, evaluation)
            self.interviews.save(interview)

        log_event(
            "interview",
            "answer_recorded",
            interview_id,
            question_id=question_id,
            mode=mode.value,
            answer=answer_text,
            evaluated=mode is InterviewMode.UNTIMED,
        )
        return interview

    def finish(self, interview_id: str, user_id: str, ended_reason: Any = None) -> FinishResult:
        interview = self._owned(interview_id, user_id)
        if is_completed(interview):
            return FinishResult(interview=interview, already_completed=True)

        reason = ended_reason if isinstance(ended_reason, EndedReason) else EndedReason.parse(ended_reason)
        mode = InterviewMode.parse(interview.get("interview_mode"))

        for question in interview["questions"]:
            if not str(question.get("user_answer") or "").strip():
                continue
            # untimed answers are rescored only when their evaluation failed earlier
            if mode is InterviewMode.UNTIMED and str(question.get("feedback") or "").strip():
                continue
            apply_evaluation(question, self._evaluate(question, strict=False))

        avg_score, answered_count = calculate_average_score(interview)
        now = utc_now()
        interview["score"] = avg_score
        interview["status"] = InterviewStatus.COMPLETED.value
        interview["completed_at"] = to_iso(now)
        interview["ended_reason"] = reason.value
        interview["overall_feedback"] = {
            "strengths": list(OVERALL_FEEDBACK_TEMPLATE["strengths"]),
            "weaknesses": list(OVERALL_FEEDBACK_TEMPLATE["weaknesses"]),
            "improvement_plan": OVERALL_FEEDBACK_TEMPLATE["improvement_plan"],
        }
        self.interviews.save(interview)
        record_finish(reason.value)

        user = self.users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        outcome = self._apply_gamification(user, now, avg_score, answered_count)

        log_event(
            "interview",
            "finished",
            interview_id,
            user_id=user_id,
            ended_reason=reason.value,
            score=round(avg_score, 2),
            answered=answered_count,
            xp_gain=outcome.xp_gain,
        )

        self._send_summary(user, interview, avg_score, answered_count, reason)
        return FinishResult(interview=interview, outcome=outcome)

    def _apply_gamification(
        self,
        user: dict[str, Any],
        now: datetime,
        avg_score: float,
        answered_count: int,
    ) -> CompletionOutcome:
        outcome = apply_completion(state_from_user(user), now, avg_score, answered_count, tz=self.tz)
        write_state_to_user(user, outcome.state)
        self.users.save(user)
        log_event(
            "gamification",
            "applied",
            "",
            user_id=user["id"],
            xp=outcome.state.xp,
            level=outcome.state.level,
            streak_count=outcome.state.streak_count,
            badges=list(outcome.state.badges),
        )
        return outcome

    def _send_summary(
        self,
        user: dict[str, Any],
        interview: dict[str, Any],
        avg_score: float,
        answered_count: int,
        reason: EndedReason,
    ) -> None:
        recipient = summary_recipient(user)
        if not recipient:
            return

        subject, body = compose_summary_email(interview, avg_score, answered_count, reason)
        try:
            self.mailer.send(recipient, subject, body)
        except Exception as exc:
            increment_metric("emails_failed")
            logger.error("failed to send interview summary email | interview=%s err=%s", interview["id"], exc)
            log_event("email", "summary_failed", interview["id"], error=str(exc))
            return

        increment_metric("emails_sent")
        log_event("email", "summary_sent", interview["id"])

    def list_interviews(self, user_id: str, status: str | None = None, limit: Any = None) -> list[dict[str, Any]]:
        swept = self.interviews.abandon_in_progress(user_id)
        if swept:
            increment_metric("interviews_abandoned_swept", swept)
            log_event("interview", "abandoned_sweep", "", user_id=user_id, count=swept)

        status = str(status or "").strip() or None
        return self.interviews.list_for_user(user_id, status=status, limit=clamp_list_limit(limit))

    def transcribe(
        self,
        interview_id: str,
        user_id: str,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> str:
        self._owned(interview_id, user_id)
        if len(content) > MAX_AUDIO_BYTES:
            raise ValidationFailed(AUDIO_TOO_LARGE_MESSAGE)

        try:
            text = self.llm.transcribe(filename, content, content_type)
        except Exception as exc:
            logger.error("transcription failed | interview=%s err=%s", interview_id, exc)
            raise TranscriptionError("Failed to transcribe audio") from exc

        if not text:
            logger.error("transcription failed | interview=%s err=empty transcription", interview_id)
            raise TranscriptionError("Failed to transcribe audio")

        increment_metric("transcriptions_total")
        log_event("interview", "transcribed", interview_id, transcript=text)
        return text
