import json
import logging
from typing import Any

logger = logging.getLogger("interview_pilot.events")

_REDACTED_KEYS = {"answer", "answer_text", "user_answer", "transcript", "text", "prompt", "password", "token"}


def configure_logging(level: str = "INFO") -> None:
	logging.basicConfig(
		level=getattr(logging, str(level or "INFO").upper(), logging.INFO),
		format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
	)


def _sanitize_value(key: str, value: Any) -> Any:
	normalized_key = str(key or "").lower()
	if normalized_key in _REDACTED_KEYS:
		text = str(value or "")
		return {
			"redacted": True,
			"length": len(text),
		}
	if isinstance(value, (str, int, float, bool)) or value is None:
		return value
	if isinstance(value, dict):
		return {str(k): _sanitize_value(str(k), v) for k, v in value.items()}
	if isinstance(value, (list, tuple, set)):
		return [_sanitize_value(normalized_key, item) for item in value]
	return str(value)


def build_event(component: str, event: str, session_id: str, **kwargs) -> dict[str, Any]:
	payload = {
		"component": str(component or "app"),
		"event": str(event or "unknown"),
		"session_id": str(session_id or ""),
	}
	payload.update({str(k): _sanitize_value(str(k), v) for k, v in kwargs.items()})
	return payload


def log_event(component: str, event: str, session_id: str, **kwargs) -> None:
	logger.info(json.dumps(build_event(component, event, session_id, **kwargs), ensure_ascii=False, default=str))
