import io
import logging
import re

from openai import OpenAI

from interview_pilot.core.config import Settings

logger = logging.getLogger("interview_pilot.services.llm")

_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_markdown_fences(text: str) -> str:
    return _FENCE_PATTERN.sub("", str(text or "")).strip()


class LLMService:
    """
    Thin wrapper over an OpenAI-compatible endpoint.

    Chat completions return raw text; callers parse. Transcription returns
    the stripped text. Provider exceptions propagate unchanged.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        stt_model: str,
        stt_language: str = "",
        client: OpenAI | None = None,
    ):
        self.model = model
        self.stt_model = stt_model
        self.stt_language = stt_language
        self.client = client or OpenAI(api_key=api_key, base_url=base_url)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMService":
        return cls(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            model=settings.llm_model,
            stt_model=settings.stt_model,
            stt_language=settings.stt_language,
        )

    def complete(self, system: str, prompt: str, temperature: float = 0.4) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            temperature=temperature,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        )
        message = response.choices[0].message.content
        logger.debug("completion received | model=%s chars=%s", self.model, len(message or ""))
        return str(message or "")

    def transcribe(self, filename: str, content: bytes, content_type: str | None = None) -> str:
        buffer = io.BytesIO(content)
        buffer.name = filename or "recording.webm"
        kwargs = {
            "file": (buffer.name, buffer, content_type or "application/octet-stream"),
            "model": self.stt_model,
        }
        if self.stt_language:
            kwargs["language"] = self.stt_language

        transcription = self.client.audio.transcriptions.create(**kwargs)
        text = getattr(transcription, "text", "")
        return text.strip() if isinstance(text, str) else ""
