"""
Target text field snapshot and voice eligibility.

Responsibilities:
- Capture the immutable facts about the field at session start
- Decide whether the field can accept voice input at all
- Decide whether (and where) the microphone key is offered

Non-responsibilities:
- No consent decisions (see orchestrator.consent)
- No UI
"""

from __future__ import annotations

from dataclasses import dataclass

from constants import DEFAULT_SUPPORTED_VOICE_LOCALES, IME_OPTION_NO_MICROPHONE
from orchestrator.enums.voice_mode import VoiceButtonMode


def _normalize_locale(locale: str) -> str:
    return locale.strip().replace("-", "_").lower()


@dataclass(frozen=True)
class FieldContext:
    """Immutable snapshot of the target text field at session start."""

    field_is_password: bool
    locale: str
    enabled_languages: frozenset[str] = frozenset()
    private_ime_options: str | None = None
    supported_locales: frozenset[str] = frozenset(DEFAULT_SUPPORTED_VOICE_LOCALES)

    @property
    def locale_supported(self) -> bool:
        """
        True if the recognizer supports the input locale.

        Matches the full locale first, then its language part
        ("en_US" is supported if "en" is).
        """
        if not self.locale:
            return False
        supported = {_normalize_locale(loc) for loc in self.supported_locales}
        normalized = _normalize_locale(self.locale)
        if normalized in supported:
            return True
        return normalized.split("_", 1)[0] in supported

    @property
    def no_microphone(self) -> bool:
        return self.private_ime_options == IME_OPTION_NO_MICROPHONE


def field_can_do_voice(field_context: FieldContext) -> bool:
    """Password fields never receive voice input."""
    return not field_context.field_is_password


@dataclass(frozen=True)
class VoiceButtonState:
    enabled: bool
    on_primary: bool


def voice_button_state(
    field_context: FieldContext,
    mode: VoiceButtonMode,
    recognition_available: bool,
) -> VoiceButtonState:
    """Resolve microphone key visibility for a field."""
    enabled = (
        mode is not VoiceButtonMode.OFF
        and field_can_do_voice(field_context)
        and not field_context.no_microphone
        and recognition_available
    )
    return VoiceButtonState(
        enabled=enabled,
        on_primary=mode is VoiceButtonMode.MAIN,
    )
