# pylint: disable=missing-module-docstring,missing-function-docstring

import json

import pytest

from adapters.store.json_store import JsonConsentStore
from adapters.telemetry.log_sink import LogTelemetrySink
from config import AppConfig
from context.modifications import ModificationCounters
from observability import logger
from orchestrator.enums.voice_mode import VoiceButtonMode
from session.factory import build_voice_session


class NullRecognizer:
    def begin(self, field_context, run_id):
        pass

    def cancel(self, run_id):
        pass

    def is_available(self):
        return True


@pytest.fixture
def log_lines(monkeypatch: pytest.MonkeyPatch) -> list[dict]:
    captured: list[dict] = []
    monkeypatch.setattr(logger, "_print", lambda line: captured.append(json.loads(line)))
    monkeypatch.setattr(logger, "_enabled", True)
    return captured


def _config(tmp_path, **overrides):
    values = {
        "env": "test",
        "log_level": "INFO",
        "enable_json_logs": True,
        "consent_store_path": tmp_path / "consent.json",
        "voice_mode": VoiceButtonMode.MAIN,
        "supported_voice_locales": frozenset({"de"}),
    }
    values.update(overrides)
    return AppConfig(**values)


def test_build_wires_store_and_log_telemetry(tmp_path, log_lines):
    session = build_voice_session(NullRecognizer(), ui=None, config=_config(tmp_path))

    assert isinstance(session.store, JsonConsentStore)
    assert isinstance(session.telemetry, LogTelemetrySink)
    assert session.supported_locales == frozenset({"de"})
    assert session.field_context("de_AT").locale_supported
    assert log_lines[-1]["event_type"] == "VOICE_SESSION_CREATED"
    assert log_lines[-1]["session_id"] == session.session_id


def test_stored_voice_mode_overrides_config(tmp_path, log_lines):
    JsonConsentStore(tmp_path / "consent.json").save_voice_mode(VoiceButtonMode.OFF)

    session = build_voice_session(NullRecognizer(), ui=None, config=_config(tmp_path))

    assert session.voice_mode is VoiceButtonMode.OFF


def test_build_from_environment(tmp_path, monkeypatch, log_lines):
    monkeypatch.setenv("VOICE_CONSENT_STORE_PATH", str(tmp_path / "env.json"))
    monkeypatch.setenv("VOICE_MODE", "secondary")
    monkeypatch.setenv("ENABLE_JSON_LOGS", "1")

    session = build_voice_session(NullRecognizer(), ui=None)

    assert session.store.path == tmp_path / "env.json"
    assert session.voice_mode is VoiceButtonMode.SECONDARY


def test_log_telemetry_sink_writes_events_and_counters(log_lines):
    sink = LogTelemetrySink(session_id="s1")

    sink.record("warning_dialog_ok", {})
    sink.record_modifications(ModificationCounters(deleted_chars=2))

    assert log_lines[0]["event_type"] == "VOICE_TELEMETRY"
    assert log_lines[0]["name"] == "warning_dialog_ok"
    assert log_lines[1]["event_type"] == "METRIC_COUNTERS"
    assert log_lines[1]["metric"] == "text_modifications"
    assert log_lines[1]["values"]["deleted_chars"] == 2
    assert log_lines[1]["session_id"] == "s1"
