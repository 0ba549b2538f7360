"""
Unified event definitions for the voice session reducer.

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior).
- All reducer decisions are based on these events.
- No clocks, no async, no side effects.

Recognizer events may carry the run_id of the recognition they belong to,
so results arriving after a cancellation or a restart can be told apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from context.field import FieldContext
from orchestrator.consent import ConsentRecord
from orchestrator.enums.mode import InputMode
from orchestrator.state_dataclass import RecognitionResult


# =============================================================================
# Event Type Enumeration
# =============================================================================

class EventType(str, Enum):
    """
    Canonical event types understood by the reducer.

    Every (state, event_type) pair must be explicitly handled
    or explicitly ignored by the reducer.
    """

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------
    START_REQUESTED = "START_REQUESTED"
    CONSENT_RESULT = "CONSENT_RESULT"
    INPUT_VIEW_STARTED = "INPUT_VIEW_STARTED"
    INPUT_MODE_CHANGED = "INPUT_MODE_CHANGED"
    HIDE_WINDOW = "HIDE_WINDOW"
    SESSION_END = "SESSION_END"

    # ------------------------------------------------------------------
    # Recognizer
    # ------------------------------------------------------------------
    RECOGNITION_RESULTS = "RECOGNITION_RESULTS"
    RESULTS_APPLIED = "RESULTS_APPLIED"
    RECOGNITION_CANCELLED = "RECOGNITION_CANCELLED"

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    CHARACTER_TYPED = "CHARACTER_TYPED"
    SEPARATOR_TYPED = "SEPARATOR_TYPED"
    BACKSPACE = "BACKSPACE"
    SELECTION_CHANGED = "SELECTION_CHANGED"
    REVERT_REQUESTED = "REVERT_REQUESTED"

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------
    CURSOR_WORD = "CURSOR_WORD"
    SUGGESTION_CHOSEN = "SUGGESTION_CHOSEN"
    SUGGESTIONS_REFRESHED = "SUGGESTIONS_REFRESHED"

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------
    FLUSH_REQUESTED = "FLUSH_REQUESTED"


# =============================================================================
# Base Event
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Base event type.

    All events must specify:
    - event_type: discriminant
    - ts_ms: timestamp provided by the source (or fake in tests)
    """

    event_type: EventType
    ts_ms: int


# =============================================================================
# Session Lifecycle Events
# =============================================================================

@dataclass(frozen=True)
class StartRequested(Event):
    """User asked to speak into the given field."""
    field_context: FieldContext
    consent: ConsentRecord
    recognizer_available: bool = True


@dataclass(frozen=True)
class ConsentResult(Event):
    """
    User answered the warning dialog.

    granted=False covers both the cancel button and dismissing the dialog.
    """
    granted: bool


@dataclass(frozen=True)
class InputViewStarted(Event):
    """The keyboard view was (re)shown for a field."""
    field_context: FieldContext
    consent: ConsentRecord


@dataclass(frozen=True)
class InputModeChanged(Event):
    """Keyboard switched between voice and key input."""
    mode: InputMode


@dataclass(frozen=True)
class HideWindow(Event):
    """Keyboard window is being hidden."""


@dataclass(frozen=True)
class SessionEnd(Event):
    """Caller ends the session (field left, input finished)."""


# =============================================================================
# Recognizer Events
# =============================================================================

@dataclass(frozen=True)
class RecognitionResults(Event):
    """
    Recognizer delivered its final result.

    May arrive late (after a cancel); the reducer gates it by state and run_id.
    """
    result: RecognitionResult
    run_id: int | None = None


@dataclass(frozen=True)
class ResultsApplied(Event):
    """Host is ready to apply the pending result to the document."""
    capitalize_first_word: bool = False


@dataclass(frozen=True)
class RecognitionCancelled(Event):
    """Recognition ended without a result (timeout, user, system)."""
    reason: str = "cancelled"
    run_id: int | None = None


# =============================================================================
# Editing Events
# =============================================================================

@dataclass(frozen=True)
class CharacterTyped(Event):
    """A non-separator character was typed."""


@dataclass(frozen=True)
class SeparatorTyped(Event):
    """A word separator (space, punctuation) was typed."""


@dataclass(frozen=True)
class Backspace(Event):
    """
    Delete key pressed.

    None for either field means "use the tracked cursor and selection".
    """
    selection_length: int | None = None
    cursor_pos: int | None = None


@dataclass(frozen=True)
class SelectionChanged(Event):
    """Cursor or selection moved in the edited field."""
    sel_start: int
    sel_end: int


@dataclass(frozen=True)
class RevertRequested(Event):
    """User asked to undo the inserted transcription."""


# =============================================================================
# Suggestion Events
# =============================================================================

@dataclass(frozen=True)
class CursorWord(Event):
    """
    Cursor is touching a word.

    first_char_is_upper None means "derive it from the word".
    """
    word: str
    first_char_is_upper: bool | None = None


@dataclass(frozen=True)
class SuggestionChosen(Event):
    """User picked a suggestion to replace the word at the cursor."""
    old_word: str
    chosen: str
    index: int = -1


@dataclass(frozen=True)
class SuggestionsRefreshed(Event):
    """Suggestion strip was refreshed after an edit."""


# =============================================================================
# Telemetry Events
# =============================================================================

@dataclass(frozen=True)
class FlushRequested(Event):
    """Emit and reset modification counters now."""
