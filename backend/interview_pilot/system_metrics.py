import threading
import time
from typing import Any


_lock = threading.Lock()
_metrics: dict[str, float] = {
    "interviews_started": 0.0,
    "interviews_finished": 0.0,
    "interviews_finished_manual": 0.0,
    "interviews_finished_timeout": 0.0,
    "interviews_finished_abandoned": 0.0,
    "interviews_abandoned_swept": 0.0,
    "answers_submitted": 0.0,
    "evaluations_total": 0.0,
    "evaluation_fallbacks": 0.0,
    "transcriptions_total": 0.0,
    "emails_sent": 0.0,
    "emails_failed": 0.0,
    "evaluation_latency_total_ms": 0.0,
    "evaluation_latency_samples": 0.0,
}


def increment_metric(name: str, amount: float = 1.0) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        _metrics[key] = float(_metrics.get(key, 0.0)) + float(amount)


def observe_evaluation_latency_ms(value_ms: float) -> None:
    latency = max(0.0, float(value_ms or 0.0))
    with _lock:
        _metrics["evaluation_latency_total_ms"] = float(_metrics.get("evaluation_latency_total_ms", 0.0)) + latency
        _metrics["evaluation_latency_samples"] = float(_metrics.get("evaluation_latency_samples", 0.0)) + 1.0


def record_finish(reason: str) -> None:
    normalized = str(reason or "").strip().lower()
    key_map = {
        "manual": "interviews_finished_manual",
        "timeout": "interviews_finished_timeout",
        "abandoned": "interviews_finished_abandoned",
    }
    metric_key = key_map.get(normalized, "interviews_finished_manual")
    with _lock:
        _metrics["interviews_finished"] = float(_metrics.get("interviews_finished", 0.0)) + 1.0
        _metrics[metric_key] = float(_metrics.get(metric_key, 0.0)) + 1.0


def reset_metrics() -> None:
    with _lock:
        for key in list(_metrics):
            _metrics[key] = 0.0


def get_metrics_snapshot(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    with _lock:
        data = dict(_metrics)

    latency_samples = max(1.0, float(data.get("evaluation_latency_samples") or 0.0))

    payload: dict[str, Any] = {
        "generated_at": time.time(),
        "interviews_started": int(data.get("interviews_started") or 0.0),
        "interviews_finished": int(data.get("interviews_finished") or 0.0),
        "interviews_finished_manual": int(data.get("interviews_finished_manual") or 0.0),
        "interviews_finished_timeout": int(data.get("interviews_finished_timeout") or 0.0),
        "interviews_finished_abandoned": int(data.get("interviews_finished_abandoned") or 0.0),
        "interviews_abandoned_swept": int(data.get("interviews_abandoned_swept") or 0.0),
        "answers_submitted": int(data.get("answers_submitted") or 0.0),
        "evaluations_total": int(data.get("evaluations_total") or 0.0),
        "evaluation_fallbacks": int(data.get("evaluation_fallbacks") or 0.0),
        "transcriptions_total": int(data.get("transcriptions_total") or 0.0),
        "emails_sent": int(data.get("emails_sent") or 0.0),
        "emails_failed": int(data.get("emails_failed") or 0.0),
        "avg_evaluation_latency_ms": round(float(data.get("evaluation_latency_total_ms") or 0.0) / latency_samples, 2),
    }

    if extra:
        payload.update(extra)
    return payload
