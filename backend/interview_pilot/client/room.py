"""
Client side of an interview session.

``InterviewRoom`` walks the questions of one interview the way the web room
does: a per-question countdown in timed mode, auto-submit and advance when
it runs out, optional voice capture whose transcript is appended to the
typed answer, and a best-effort ``abandoned`` finish on teardown. The server
remains authoritative; everything here is advisory state.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Protocol

from interview_pilot.client.api_client import ApiError, InterviewPilotClient

logger = logging.getLogger("interview_pilot.client.room")


class RoomState(str, Enum):
    IDLE = "idle"
    ANSWERING = "answering"
    RECORDING = "recording"
    SUBMITTED = "submitted"
    COMPLETED = "completed"


class Recorder(Protocol):
    def start(self) -> None:
        ...

    def stop(self) -> bytes:
        ...


class CountdownTimer:
    """
    Whole-second countdown for the active question.

    ``load`` arms the expiry guard; the first tick that sees time remaining
    disarms it, so a stale zero from the previous question never fires.
    """

    def __init__(self):
        self.remaining: int | None = None
        self.expiry_guard = False

    def load(self, seconds: int) -> None:
        self.expiry_guard = True
        self.remaining = max(0, int(seconds))

    def clear(self) -> None:
        self.remaining = None
        self.expiry_guard = False

    def tick(self) -> bool:
        """Advance one second; True exactly once when the budget runs out."""
        if self.remaining is None:
            return False
        if self.remaining > 0:
            self.expiry_guard = False
            self.remaining -= 1
        if self.remaining == 0 and not self.expiry_guard:
            self.expiry_guard = True
            return True
        return False


class InterviewRoom:
    def __init__(self, client: InterviewPilotClient, interview_id: str, recorder: Recorder | None = None):
        self.client = client
        self.interview_id = interview_id
        self.recorder = recorder
        self.timer = CountdownTimer()
        self.state = RoomState.IDLE
        self.interview: dict[str, Any] | None = None
        self.index = 0
        self.answer_text = ""
        self.finalized = False
        self.finish_result: dict[str, Any] | None = None
        self._can_abandon = False

    @property
    def timed(self) -> bool:
        return bool(self.interview) and self.interview["interviewMode"] == "timed"

    @property
    def questions(self) -> list[dict[str, Any]]:
        return (self.interview or {}).get("questions") or []

    @property
    def current_question(self) -> dict[str, Any] | None:
        if 0 <= self.index < len(self.questions):
            return self.questions[self.index]
        return None

    @property
    def is_last_question(self) -> bool:
        return self.index >= len(self.questions) - 1

    def load(self) -> dict[str, Any]:
        self.interview = self.client.get_interview(self.interview_id)
        if self.interview.get("status") == "completed":
            self.finalized = True
            self.state = RoomState.COMPLETED
            return self.interview

        self._can_abandon = True
        self.index = next(
            (i for i, q in enumerate(self.questions) if not str(q.get("userAnswer") or "").strip()),
            0,
        )
        self._enter_question()
        return self.interview

    def _enter_question(self) -> None:
        self.state = RoomState.ANSWERING
        self.answer_text = ""
        if self.timed:
            self.timer.load(self.interview["perQuestionTimeSeconds"])
        else:
            self.timer.clear()

    def type_answer(self, text: str) -> None:
        self.answer_text = text

    def _submit_current(self, answer_text: str) -> bool:
        question = self.current_question
        if question is None or not answer_text.strip():
            return False
        try:
            updated = self.client.submit_answer(self.interview_id, question["_id"], answer_text.strip())
        except ApiError as exc:
            logger.warning("answer submission failed | interview=%s err=%s", self.interview_id, exc.detail)
            return False
        self.questions[self.index] = updated
        self.answer_text = ""
        self.state = RoomState.SUBMITTED
        return True

    def submit(self) -> bool:
        """Submit the typed answer; timed rooms move straight on to the next question."""
        if self.finalized or self.state is RoomState.RECORDING:
            return False
        if not self._submit_current(self.answer_text):
            return False

        if self.timed:
            if self.is_last_question:
                self.finish("manual")
            else:
                self.next_question()
        return True

    def next_question(self) -> bool:
        if self.finalized or self.is_last_question:
            return False
        self.index += 1
        self._enter_question()
        return True

    def start_recording(self) -> bool:
        if self.recorder is None or self.finalized or self.state is RoomState.RECORDING:
            return False
        self.recorder.start()
        self.state = RoomState.RECORDING
        return True

    def stop_recording(self) -> str:
        """Stop capture and append the transcript to the typed answer."""
        if self.recorder is None or self.state is not RoomState.RECORDING:
            return ""
        clip = self.recorder.stop()
        self.state = RoomState.ANSWERING
        if not clip:
            return ""
        try:
            text = self.client.transcribe(self.interview_id, clip)
        except ApiError as exc:
            logger.warning("transcription failed | interview=%s err=%s", self.interview_id, exc.detail)
            return ""
        if text:
            self.answer_text = f"{self.answer_text} {text}" if self.answer_text else text
        return text

    def on_timer_expired(self) -> None:
        if self.interview is None or self.finalized:
            return
        if self.state is RoomState.RECORDING:
            self.stop_recording()

        question = self.current_question or {}
        already_answered = bool(str(question.get("userAnswer") or "").strip())
        if not already_answered and self.answer_text.strip():
            self._submit_current(self.answer_text)

        if not self.is_last_question:
            self.next_question()
            return
        self.finish("timeout")

    def tick(self) -> None:
        if not self.timed or self.finalized:
            return
        if self.timer.tick():
            self.on_timer_expired()

    def complete(self) -> dict[str, Any] | None:
        return self.finish("manual")

    def finish(self, reason: str = "manual") -> dict[str, Any] | None:
        if self.finalized:
            return None
        self.finalized = True
        try:
            self.finish_result = self.client.finish(self.interview_id, reason)
        except ApiError as exc:
            logger.warning("finish failed | interview=%s reason=%s err=%s", self.interview_id, reason, exc.detail)
            self.finalized = False
            return None
        self.state = RoomState.COMPLETED
        self.timer.clear()
        return self.finish_result

    def abandon(self) -> bool:
        """Teardown hook: send at most one best-effort ``abandoned`` finish."""
        if self.finalized or not self._can_abandon:
            return False
        self.finalized = True
        self.timer.clear()
        return self.client.finish_best_effort(self.interview_id, "abandoned")


async def run_countdown(room: InterviewRoom, interval: float = 1.0) -> None:
    """Tick a timed room once per ``interval`` seconds until it completes."""
    if not room.timed:
        return
    while not room.finalized:
        await asyncio.sleep(interval)
        await asyncio.to_thread(room.tick)
        if room.timer.remaining == 0 and room.timer.expiry_guard and not room.finalized:
            # expiry already handled and the final finish call failed
            break
