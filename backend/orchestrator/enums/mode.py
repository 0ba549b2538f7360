"""
Keyboard input mode enumeration.

Modes are orthogonal to session states:
- State answers: "Where is the voice session in its lifecycle?"
- Mode answers:  "Is the keyboard currently showing voice or keys?"
"""

from __future__ import annotations

from enum import Enum


class InputMode(str, Enum):
    """
    Input mode reported by the host keyboard.

    VOICE:
        The keyboard is in voice mode. A cancellation originates inside
        the keyboard (timeout, user cancel) and the host must switch back
        to the previous input method.

    KEYBOARD:
        The keyboard already left voice mode (the user switched input
        methods). A cancellation is the echo of that switch and needs no
        further action.
    """

    VOICE = "VOICE"
    KEYBOARD = "KEYBOARD"
