"""
Consent gate for microphone access.

Purpose:
- Decide whether the voice warning dialog must precede recognition
- Produce the updated consent record once the user accepts
- Select which warning parts the dialog must show

This module contains NO persistence, NO UI, NO side effects.
Persistence of the returned record is the caller's responsibility.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping

from constants import (
    PREF_HAS_USED_VOICE_INPUT,
    PREF_HAS_USED_VOICE_INPUT_UNSUPPORTED_LOCALE,
    WARNING_HOW_TO_TURN_OFF,
    WARNING_LOCALE_NOT_SUPPORTED,
    WARNING_MAY_NOT_UNDERSTAND,
)
from context.field import FieldContext


# =============================================================================
# Consent Record
# =============================================================================

@dataclass(frozen=True)
class ConsentRecord:
    """
    Persisted consent flags.

    Invariant: once a flag is True it is never set back to False.

    The two flags are coupled: the unsupported-locale flag only matters
    when the locale is unsupported, and it never waives the generic
    first-use warning on its own.
    """

    has_used_voice_input: bool = False
    has_used_voice_input_unsupported_locale: bool = False

    def to_prefs(self) -> dict[str, bool]:
        return {
            PREF_HAS_USED_VOICE_INPUT: self.has_used_voice_input,
            PREF_HAS_USED_VOICE_INPUT_UNSUPPORTED_LOCALE: (
                self.has_used_voice_input_unsupported_locale
            ),
        }

    @staticmethod
    def from_prefs(prefs: Mapping[str, Any]) -> ConsentRecord:
        return ConsentRecord(
            has_used_voice_input=bool(prefs.get(PREF_HAS_USED_VOICE_INPUT, False)),
            has_used_voice_input_unsupported_locale=bool(
                prefs.get(PREF_HAS_USED_VOICE_INPUT_UNSUPPORTED_LOCALE, False)
            ),
        )


# =============================================================================
# Gate
# =============================================================================

def needs_consent(record: ConsentRecord, field_context: FieldContext) -> bool:
    """
    True if the warning dialog must be shown before listening.

    Shown on first use, and once more the first time voice input is used
    from a locale the recognizer does not support.
    """
    return not record.has_used_voice_input or (
        not field_context.locale_supported
        and not record.has_used_voice_input_unsupported_locale
    )


def grant(record: ConsentRecord, field_context: FieldContext) -> ConsentRecord:
    """
    Return the record updated for an accepted warning dialog.

    Never clears a flag: granting is monotonic.
    """
    updated = replace(record, has_used_voice_input=True)
    if not field_context.locale_supported:
        updated = replace(updated, has_used_voice_input_unsupported_locale=True)
    return updated


def warning_parts(field_context: FieldContext) -> tuple[str, ...]:
    """Message parts of the warning dialog, in display order."""
    if field_context.locale_supported:
        return (WARNING_MAY_NOT_UNDERSTAND, WARNING_HOW_TO_TURN_OFF)
    return (
        WARNING_LOCALE_NOT_SUPPORTED,
        WARNING_MAY_NOT_UNDERSTAND,
        WARNING_HOW_TO_TURN_OFF,
    )
