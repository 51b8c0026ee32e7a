import json
import logging

from interview_pilot.core.logger import build_event, log_event


def test_build_event_redacts_candidate_text():
    event = build_event(
        "interview",
        "answer_submitted",
        "iv-1",
        answer_text="my secret answer",
        score=7,
        meta={"transcript": "hello", "role": "Backend"},
    )

    assert event["component"] == "interview"
    assert event["session_id"] == "iv-1"
    assert event["answer_text"] == {"redacted": True, "length": 16}
    assert event["score"] == 7
    assert event["meta"] == {"transcript": {"redacted": True, "length": 5}, "role": "Backend"}


def test_build_event_defaults_and_collections():
    event = build_event("", "", None, tags=("a", 1), when=object)

    assert event["component"] == "app"
    assert event["event"] == "unknown"
    assert event["session_id"] == ""
    assert event["tags"] == ["a", 1]
    assert isinstance(event["when"], str)


def test_log_event_writes_json(caplog):
    with caplog.at_level(logging.INFO, logger="interview_pilot.events"):
        log_event("interview", "finished", "iv-2", password="hunter2")

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "finished"
    assert payload["password"]["redacted"] is True
