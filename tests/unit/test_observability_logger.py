# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger, metrics


def test_log_event_emits_valid_jsonl(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """
    - log_event emits exactly one JSONL line
    - payload is serialized as-is
    - output sink is patchable
    """
    captured: list[str] = []

    def fake_print(line: str) -> None:
        captured.append(line)

    # Patch the explicit output sink used by logger
    monkeypatch.setattr(logger, "_print", fake_print)
    monkeypatch.setattr(logger, "_enabled", True)

    payload: dict[str, Any] = {
        "event_type": "TEST",
        "value": 123,
    }

    logger.log_event(payload)

    # Exactly one line emitted
    assert len(captured) == 1

    # Must be valid JSON
    decoded = json.loads(captured[0])

    # Payload must be preserved exactly
    assert decoded == payload


def test_unserializable_event_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[str] = []
    monkeypatch.setattr(logger, "_print", captured.append)
    monkeypatch.setattr(logger, "_enabled", True)

    logger.log_event({"ts_ms": 7, "event_type": "TEST", "bad": object()})

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "LOGGER_SERIALIZATION_ERROR"
    assert decoded["ts_ms"] == 7


def test_configure_silences_sink(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[str] = []
    monkeypatch.setattr(logger, "_print", captured.append)
    monkeypatch.setattr(logger, "_enabled", True)

    logger.configure(enabled=False)
    logger.log_event({"event_type": "TEST"})

    assert captured == []


def test_timed_emits_one_metric(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[str] = []
    monkeypatch.setattr(logger, "_print", captured.append)
    monkeypatch.setattr(logger, "_enabled", True)

    with metrics.timed("unit_block", session_id="s1", details={"k": "v"}):
        pass

    assert len(captured) == 1
    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "METRIC_TIMER"
    assert decoded["metric"] == "unit_block"
    assert decoded["session_id"] == "s1"
    assert decoded["value_ms"] >= 0


def test_stopping_unknown_or_discarded_timer_is_silent(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[str] = []
    monkeypatch.setattr(logger, "_print", captured.append)
    monkeypatch.setattr(logger, "_enabled", True)

    timer_id = metrics.start_timer("dropped")
    metrics.discard_timer(timer_id)

    assert metrics.stop_timer(timer_id) is None
    assert metrics.stop_timer("timer_unknown") is None
    assert captured == []


def test_record_counters(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[str] = []
    monkeypatch.setattr(logger, "_print", captured.append)
    monkeypatch.setattr(logger, "_enabled", True)

    metrics.record_counters("text_modifications", {"deleted_chars": 2}, session_id="s1")

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "METRIC_COUNTERS"
    assert decoded["values"] == {"deleted_chars": 2}
