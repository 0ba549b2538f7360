"""
Voice button placement enumeration (persisted user preference).
"""

from __future__ import annotations

from enum import Enum

from constants import VOICE_MODE_MAIN, VOICE_MODE_OFF, VOICE_MODE_SECONDARY


class VoiceButtonMode(str, Enum):
    """
    Where the microphone key is offered.

    MAIN:       on the primary keyboard
    SECONDARY:  on the symbols keyboard only
    OFF:        not at all
    """

    MAIN = VOICE_MODE_MAIN
    SECONDARY = VOICE_MODE_SECONDARY
    OFF = VOICE_MODE_OFF
