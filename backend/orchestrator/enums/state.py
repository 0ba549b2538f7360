"""
Authoritative session state enumeration.

Rules:
- This enum defines ONLY the lifecycle states of one voice input session.
- No behavior, no helper methods, no side effects.
- Transitions are defined exclusively in the reducer.
"""

from __future__ import annotations

from enum import Enum


class SessionState(str, Enum):
    """
    Lifecycle states of a voice input session.

    Exactly one is active at a time. The reducer is the only writer.
    """

    IDLE = "IDLE"
    AWAITING_CONSENT = "AWAITING_CONSENT"
    LISTENING = "LISTENING"
    RESULTS_PENDING = "RESULTS_PENDING"
    HIGHLIGHTED = "HIGHLIGHTED"
    COMMITTED = "COMMITTED"
    REVERTED = "REVERTED"
