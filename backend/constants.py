"""
Behavioral constants for the voice input session core.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic strings elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final, Tuple

# =============================================================================
# Persisted preference keys
# =============================================================================

# Whether the user has used voice input before (and thus, whether to show
# the first-run warning dialog).
PREF_HAS_USED_VOICE_INPUT: Final[str] = "has_used_voice_input"

# Whether the user has used voice input from an unsupported locale before.
PREF_HAS_USED_VOICE_INPUT_UNSUPPORTED_LOCALE: Final[str] = (
    "has_used_voice_input_unsupported_locale"
)

PREF_VOICE_MODE: Final[str] = "voice_mode"

# =============================================================================
# Field options
# =============================================================================

# Private IME option: the field must not offer a microphone (e.g. a search
# dialog that already shows its own voice search button).
IME_OPTION_NO_MICROPHONE: Final[str] = "nm"

# =============================================================================
# Voice button modes (persisted values)
# =============================================================================

VOICE_MODE_MAIN: Final[str] = "main"
VOICE_MODE_SECONDARY: Final[str] = "secondary"
VOICE_MODE_OFF: Final[str] = "off"

# =============================================================================
# Locales
# =============================================================================

DEFAULT_SUPPORTED_VOICE_LOCALES: Final[Tuple[str, ...]] = (
    "en",
    "en_US",
    "en_GB",
    "en_AU",
    "en_CA",
    "en_IN",
    "en_NZ",
    "en_ZA",
)

# =============================================================================
# Warning dialog message parts (resolved to strings by the UI shell)
# =============================================================================

WARNING_LOCALE_NOT_SUPPORTED: Final[str] = "voice_warning_locale_not_supported"
WARNING_MAY_NOT_UNDERSTAND: Final[str] = "voice_warning_may_not_understand"
WARNING_HOW_TO_TURN_OFF: Final[str] = "voice_warning_how_to_turn_off"

# =============================================================================
# Modification accounting
# =============================================================================

# Assumed length of a single typed character or separator. Compound inputs
# (emoji, smileys) are undercounted.
TYPED_INPUT_LENGTH: Final[int] = 1

# =============================================================================
# Metrics
# =============================================================================

METRIC_RECOGNITION_LATENCY: Final[str] = "recognition_latency"
METRIC_TEXT_MODIFICATIONS: Final[str] = "text_modifications"

# =============================================================================
# Storage
# =============================================================================

DEFAULT_CONSENT_STORE_PATH: Final[str] = "~/.config/voice_ime/consent.json"
