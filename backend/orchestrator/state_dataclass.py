"""
Authoritative voice session state container.

Rules:
- This dataclass is a pure data model.
- It contains ALL state the reducer may ever need.
- No behavior, no derived logic beyond trivial predicates.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Sequence

from context.alternatives import AlternativesCache
from context.field import FieldContext
from orchestrator.consent import ConsentRecord
from orchestrator.enums.mode import InputMode
from orchestrator.enums.state import SessionState


# =============================================================================
# Recognition Result
# =============================================================================

@dataclass(frozen=True)
class RecognitionResult:
    """
    One recognition attempt's output, immutable after delivery.

    candidates are best-first; alternatives map a word to its ranked
    replacement candidates.
    """

    candidates: tuple[str, ...] = ()
    alternatives: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @staticmethod
    def of(
        candidates: Sequence[str],
        alternatives: Mapping[str, Sequence[str]] | None = None,
    ) -> RecognitionResult:
        frozen = {word: tuple(alts) for word, alts in (alternatives or {}).items()}
        return RecognitionResult(
            candidates=tuple(candidates),
            alternatives=MappingProxyType(frozen),
        )


# =============================================================================
# Session State
# =============================================================================

# States in which voice text has been inserted and edits are accounted.
POST_RECOGNITION_STATES: frozenset[SessionState] = frozenset({
    SessionState.HIGHLIGHTED,
    SessionState.COMMITTED,
    SessionState.REVERTED,
})


@dataclass(frozen=True)
class VoiceSessionState:
    """Immutable snapshot of all reducer-owned session state."""

    # Session-owned, mutated only by the runtime through commands.
    # The reducer reads it for lookups.
    alternatives: AlternativesCache = field(
        default_factory=AlternativesCache, compare=False, repr=False
    )

    # ------------------------------------------------------------------
    # Control state
    # ------------------------------------------------------------------
    state: SessionState = SessionState.IDLE
    mode: InputMode = InputMode.VOICE

    # ------------------------------------------------------------------
    # Captured at start
    # ------------------------------------------------------------------
    field_context: FieldContext | None = None
    consent: ConsentRecord = ConsentRecord()

    # ------------------------------------------------------------------
    # Recognition
    # ------------------------------------------------------------------
    # Monotonic; bumped on every BeginRecognition, 0 = never started
    recognition_run: int = 0
    pending_result: RecognitionResult | None = None

    # ------------------------------------------------------------------
    # Voice-sourced text
    # ------------------------------------------------------------------
    inserted_text: str = ""
    after_voice_input: bool = False
    # True until the first suggestion refresh after insertion
    immediately_after_voice_input: bool = False
    showing_voice_suggestions: bool = False
