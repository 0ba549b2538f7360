"""
Application configuration.

Responsibilities:
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No orchestration logic
- No behavioral constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from constants import (
    DEFAULT_CONSENT_STORE_PATH,
    DEFAULT_SUPPORTED_VOICE_LOCALES,
)
from orchestrator.enums.voice_mode import VoiceButtonMode


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup and passed to the session factory.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str
    log_level: str

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool

    # ------------------------------------------------------------------
    # Voice input
    # ------------------------------------------------------------------

    consent_store_path: Path
    voice_mode: VoiceButtonMode
    supported_voice_locales: frozenset[str]

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if VOICE_MODE is not a known mode.
        """
        raw_locales = os.environ.get("VOICE_SUPPORTED_LOCALES")
        if raw_locales:
            locales = frozenset(
                part.strip() for part in raw_locales.split(",") if part.strip()
            )
        else:
            locales = frozenset(DEFAULT_SUPPORTED_VOICE_LOCALES)

        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            enable_json_logs=os.environ.get("ENABLE_JSON_LOGS", "1") == "1",
            consent_store_path=Path(
                os.environ.get("VOICE_CONSENT_STORE_PATH", DEFAULT_CONSENT_STORE_PATH)
            ).expanduser(),
            voice_mode=VoiceButtonMode(
                os.environ.get("VOICE_MODE", VoiceButtonMode.MAIN.value).lower()
            ),
            supported_voice_locales=locales,
        )
