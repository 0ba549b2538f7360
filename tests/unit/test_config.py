# pylint: disable=missing-module-docstring,missing-function-docstring

from pathlib import Path

import pytest

from config import AppConfig
from constants import DEFAULT_SUPPORTED_VOICE_LOCALES
from orchestrator.enums.voice_mode import VoiceButtonMode


_VARS = (
    "ENV",
    "LOG_LEVEL",
    "ENABLE_JSON_LOGS",
    "VOICE_CONSENT_STORE_PATH",
    "VOICE_MODE",
    "VOICE_SUPPORTED_LOCALES",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    config = AppConfig.load_from_env()

    assert config.env == "dev"
    assert config.log_level == "INFO"
    assert config.enable_json_logs is True
    assert config.voice_mode is VoiceButtonMode.MAIN
    assert config.supported_voice_locales == frozenset(DEFAULT_SUPPORTED_VOICE_LOCALES)
    assert config.consent_store_path == Path("~/.config/voice_ime/consent.json").expanduser()


def test_overrides(clean_env, tmp_path):
    clean_env.setenv("ENABLE_JSON_LOGS", "0")
    clean_env.setenv("VOICE_MODE", "Secondary")
    clean_env.setenv("VOICE_SUPPORTED_LOCALES", "de, fr_FR ,,")
    clean_env.setenv("VOICE_CONSENT_STORE_PATH", str(tmp_path / "c.json"))

    config = AppConfig.load_from_env()

    assert config.enable_json_logs is False
    assert config.voice_mode is VoiceButtonMode.SECONDARY
    assert config.supported_voice_locales == frozenset({"de", "fr_FR"})
    assert config.consent_store_path == tmp_path / "c.json"


def test_unknown_voice_mode_is_rejected(clean_env):
    clean_env.setenv("VOICE_MODE", "loud")

    with pytest.raises(ValueError):
        AppConfig.load_from_env()
