"""
Voice session bootstrap.

Loads .env, reads AppConfig, configures the log sink and wires the default
collaborators around the host-provided recognizer and UI shell.
"""

from __future__ import annotations

import time

from dotenv import load_dotenv

from adapters.store.json_store import JsonConsentStore
from adapters.telemetry.log_sink import LogTelemetrySink
from config import AppConfig
from observability import logger
from observability.logger import log_event
from orchestrator.runtime_context import (
    RecognizerProtocol,
    TelemetryProtocol,
    UIShellProtocol,
)
from session.voice_session import VoiceSession, new_session_id


def build_voice_session(
    recognizer: RecognizerProtocol,
    ui: UIShellProtocol,
    *,
    telemetry: TelemetryProtocol | None = None,
    config: AppConfig | None = None,
) -> VoiceSession:
    """
    Build a ready-to-use VoiceSession.

    Passing config skips the environment entirely.
    """
    if config is None:
        load_dotenv()
        config = AppConfig.load_from_env()

    logger.configure(enabled=config.enable_json_logs)

    session_id = new_session_id()
    store = JsonConsentStore(config.consent_store_path)

    session = VoiceSession(
        store=store,
        recognizer=recognizer,
        ui=ui,
        telemetry=telemetry if telemetry is not None else LogTelemetrySink(session_id),
        session_id=session_id,
        voice_mode=store.load_voice_mode(default=config.voice_mode),
        supported_locales=config.supported_voice_locales,
    )

    log_event({
        "ts_ms": int(time.time() * 1000),
        "event_type": "VOICE_SESSION_CREATED",
        "session_id": session_id,
        "env": config.env,
        "log_level": config.log_level,
        "voice_mode": session.voice_mode.value,
        "store_path": str(store.path),
    })
    return session
