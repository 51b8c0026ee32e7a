import logging
from typing import Protocol

import httpx

from interview_pilot.core.config import Settings
from interview_pilot.errors import EmailDeliveryError

logger = logging.getLogger("interview_pilot.services.email")

RESEND_API_URL = "https://api.resend.com/emails"


class Mailer(Protocol):
    def send(self, to: str, subject: str, text: str) -> None:
        ...


class ResendMailer:
    """
    Plain-text mail through the Resend REST API.

    Provider configuration is checked per send, so an unconfigured mailer
    only fails the operations that actually try to send.
    """

    def __init__(
        self,
        api_key: str,
        from_email: str,
        http_client: httpx.Client | None = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.timeout = timeout
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.Client | None = None) -> "ResendMailer":
        return cls(
            api_key=settings.resend_api_key,
            from_email=settings.resend_from_email,
            http_client=http_client,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.from_email)

    def _post(self, payload: dict) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if self._http_client is not None:
            return self._http_client.post(RESEND_API_URL, json=payload, headers=headers, timeout=self.timeout)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(RESEND_API_URL, json=payload, headers=headers)

    def send(self, to: str, subject: str, text: str) -> None:
        if not self.configured:
            raise EmailDeliveryError("Email provider is not configured. Set RESEND_API_KEY and RESEND_FROM_EMAIL.")

        payload = {
            "from": self.from_email,
            "to": [to],
            "subject": subject,
            "text": text,
        }
        try:
            response = self._post(payload)
        except httpx.HTTPError as exc:
            logger.error("email transport failed | err=%s", exc)
            raise EmailDeliveryError(f"Email send failed: {exc}") from exc

        if response.is_error:
            detail = response.text or response.reason_phrase
            raise EmailDeliveryError(f"Email send failed: {detail}")
        logger.info("email sent | subject=%s", subject)
