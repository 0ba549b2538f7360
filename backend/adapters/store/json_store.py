"""JSON-file persistence for consent flags and the voice button mode."""

from __future__ import annotations

import json
from pathlib import Path

from constants import DEFAULT_CONSENT_STORE_PATH, PREF_VOICE_MODE
from orchestrator.consent import ConsentRecord
from orchestrator.enums.voice_mode import VoiceButtonMode


class JsonConsentStore:
    """
    Preferences store backed by a single JSON object on disk.

    A missing or unreadable file reads as "no flags set". Writes may raise
    OSError; callers decide whether that matters.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path(DEFAULT_CONSENT_STORE_PATH).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load_consent(self) -> ConsentRecord:
        return ConsentRecord.from_prefs(self._read_all())

    def save_consent(self, record: ConsentRecord) -> None:
        data = self._read_all()
        data.update(record.to_prefs())
        self._write_all(data)

    def load_voice_mode(
        self, default: VoiceButtonMode = VoiceButtonMode.MAIN
    ) -> VoiceButtonMode:
        raw = self._read_all().get(PREF_VOICE_MODE)
        try:
            return VoiceButtonMode(str(raw).lower()) if raw is not None else default
        except ValueError:
            return default

    def save_voice_mode(self, mode: VoiceButtonMode) -> None:
        data = self._read_all()
        data[PREF_VOICE_MODE] = mode.value
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        # The store file is only ever replaced whole
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        try:
            tmp.replace(self._path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
