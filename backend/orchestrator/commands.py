"""
Side-effect command definitions for the voice session.

Rules:
- Commands are declarative requests for side effects.
- Commands are emitted by the reducer and executed by the runtime.
- No behavior, no async, no I/O, no clocks.
Invariant:
    - All concrete Command subclasses MUST be frozen dataclasses.
    - Commands are immutable value objects emitted by the reducer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from context.field import FieldContext
from orchestrator.consent import ConsentRecord


# =============================================================================
# Public value types
# =============================================================================

class Action(str, Enum):
    """What start() asked the host to do."""

    SHOW_CONSENT_DIALOG = "SHOW_CONSENT_DIALOG"
    BEGIN_RECOGNITION = "BEGIN_RECOGNITION"


@dataclass(frozen=True)
class TextEdit:
    """
    Edit the UI shell applies to the document.

    - insert_text is inserted at the cursor
    - delete_length characters before the cursor are removed first
    - replaces names the word the edit swaps out, if any
    """

    insert_text: str = ""
    delete_length: int = 0
    replaces: str | None = None

    @staticmethod
    def insert(text: str) -> TextEdit:
        return TextEdit(insert_text=text)

    @staticmethod
    def delete(length: int) -> TextEdit:
        return TextEdit(delete_length=length)

    @staticmethod
    def replace(old_word: str, new_word: str) -> TextEdit:
        return TextEdit(
            insert_text=new_word,
            delete_length=len(old_word),
            replaces=old_word,
        )

    @staticmethod
    def none() -> TextEdit:
        return TextEdit()

    @property
    def is_empty(self) -> bool:
        return not self.insert_text and not self.delete_length


class ModificationKind(str, Enum):
    INSERT = "insert"
    INSERT_PUNCTUATION = "insert_punctuation"
    DELETE = "delete"
    REVERT = "revert"


# =============================================================================
# Command Type Enumeration
# =============================================================================

class CommandType(str, Enum):
    """
    Canonical command types emitted by the reducer.

    Stable discriminants used for logging and runtime dispatch.
    """

    # Consent
    SHOW_CONSENT_DIALOG = "SHOW_CONSENT_DIALOG"
    DISMISS_CONSENT_DIALOG = "DISMISS_CONSENT_DIALOG"
    SAVE_CONSENT = "SAVE_CONSENT"

    # Recognizer
    BEGIN_RECOGNITION = "BEGIN_RECOGNITION"
    CANCEL_RECOGNITION = "CANCEL_RECOGNITION"

    # UI shell
    SWITCH_TO_LAST_INPUT_METHOD = "SWITCH_TO_LAST_INPUT_METHOD"
    APPLY_TEXT_EDIT = "APPLY_TEXT_EDIT"
    FINISH_COMPOSING = "FINISH_COMPOSING"
    SHOW_SUGGESTIONS = "SHOW_SUGGESTIONS"
    CLEAR_SUGGESTIONS = "CLEAR_SUGGESTIONS"
    SHOW_PUNCTUATION_HINT = "SHOW_PUNCTUATION_HINT"

    # Alternatives cache
    INGEST_ALTERNATIVES = "INGEST_ALTERNATIVES"
    SUBSTITUTE_ALTERNATIVE = "SUBSTITUTE_ALTERNATIVE"
    CLEAR_ALTERNATIVES = "CLEAR_ALTERNATIVES"

    # Modification accounting
    RECORD_MODIFICATION = "RECORD_MODIFICATION"
    UPDATE_CURSOR = "UPDATE_CURSOR"
    RESET_MODIFICATIONS = "RESET_MODIFICATIONS"
    FLUSH_MODIFICATIONS = "FLUSH_MODIFICATIONS"

    # Metric timers
    START_METRIC_TIMER = "START_METRIC_TIMER"
    STOP_METRIC_TIMER = "STOP_METRIC_TIMER"

    # Observability
    LOG_EVENT = "LOG_EVENT"
    RECORD_TELEMETRY = "RECORD_TELEMETRY"


# =============================================================================
# Base Command
# =============================================================================

class Command:
    """
    Base command type.

    command_type is an explicit discriminant and must never be inferred
    from Python type identity.
    """

    command_type: CommandType


# =============================================================================
# Consent Commands
# =============================================================================

@dataclass(frozen=True)
class ShowConsentDialog(Command):
    """Ask the UI shell to show the voice warning dialog."""
    message_parts: tuple[str, ...]
    command_type: CommandType = CommandType.SHOW_CONSENT_DIALOG


@dataclass(frozen=True)
class DismissConsentDialog(Command):
    """Close an open warning dialog without an answer."""
    command_type: CommandType = CommandType.DISMISS_CONSENT_DIALOG


@dataclass(frozen=True)
class SaveConsent(Command):
    """Persist the updated consent flags (best effort)."""
    record: ConsentRecord
    command_type: CommandType = CommandType.SAVE_CONSENT


# =============================================================================
# Recognizer Commands
# =============================================================================

@dataclass(frozen=True)
class BeginRecognition(Command):
    """Request the recognizer to start listening for run_id."""
    run_id: int
    field_context: FieldContext
    command_type: CommandType = CommandType.BEGIN_RECOGNITION


@dataclass(frozen=True)
class CancelRecognition(Command):
    """Request the recognizer to stop the active run."""
    run_id: int
    command_type: CommandType = CommandType.CANCEL_RECOGNITION


# =============================================================================
# UI Shell Commands
# =============================================================================

@dataclass(frozen=True)
class SwitchToLastInputMethod(Command):
    """Leave voice mode for the previously active input method."""
    command_type: CommandType = CommandType.SWITCH_TO_LAST_INPUT_METHOD


@dataclass(frozen=True)
class ApplyTextEdit(Command):
    """Apply an edit to the document."""
    edit: TextEdit
    command_type: CommandType = CommandType.APPLY_TEXT_EDIT


@dataclass(frozen=True)
class FinishComposing(Command):
    """Finalize the highlighted (composing) voice text."""
    command_type: CommandType = CommandType.FINISH_COMPOSING


@dataclass(frozen=True)
class ShowSuggestions(Command):
    """Display voice alternatives for the word at the cursor."""
    word: str
    suggestions: tuple[str, ...]
    command_type: CommandType = CommandType.SHOW_SUGGESTIONS


@dataclass(frozen=True)
class ClearSuggestions(Command):
    """Clear the suggestion strip."""
    command_type: CommandType = CommandType.CLEAR_SUGGESTIONS


@dataclass(frozen=True)
class ShowPunctuationHint(Command):
    """Offer the punctuation hint; the UI shell decides if it shows."""
    command_type: CommandType = CommandType.SHOW_PUNCTUATION_HINT


# =============================================================================
# Alternatives Cache Commands
# =============================================================================

@dataclass(frozen=True)
class IngestAlternatives(Command):
    """Merge recognizer alternatives into the session cache."""
    alternatives: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    command_type: CommandType = CommandType.INGEST_ALTERNATIVES


@dataclass(frozen=True)
class SubstituteAlternative(Command):
    """Rename old_word's entry to chosen."""
    old_word: str
    chosen: str
    command_type: CommandType = CommandType.SUBSTITUTE_ALTERNATIVE


@dataclass(frozen=True)
class ClearAlternatives(Command):
    """Drop all cached alternatives."""
    command_type: CommandType = CommandType.CLEAR_ALTERNATIVES


# =============================================================================
# Modification Accounting Commands
# =============================================================================

@dataclass(frozen=True)
class RecordModification(Command):
    """
    Count one user edit.

    For DELETE, cursor_pos/selection_length None means "use tracked cursor".
    """
    kind: ModificationKind
    count: int = 1
    cursor_pos: int | None = None
    selection_length: int | None = None
    command_type: CommandType = CommandType.RECORD_MODIFICATION


@dataclass(frozen=True)
class UpdateCursor(Command):
    """Track cursor position and selection span for delete accounting."""
    cursor_pos: int
    selection_span: int
    command_type: CommandType = CommandType.UPDATE_CURSOR


@dataclass(frozen=True)
class ResetModifications(Command):
    """Zero the counters without emitting them."""
    command_type: CommandType = CommandType.RESET_MODIFICATIONS


@dataclass(frozen=True)
class FlushModifications(Command):
    """
    Snapshot and reset the counters.

    emit=True forwards the snapshot to the telemetry collaborator.
    """
    emit: bool = True
    command_type: CommandType = CommandType.FLUSH_MODIFICATIONS


# =============================================================================
# Metric Timer Commands
# =============================================================================

@dataclass(frozen=True)
class StartMetricTimer(Command):
    """Start a named latency timer."""
    name: str
    command_type: CommandType = CommandType.START_METRIC_TIMER


@dataclass(frozen=True)
class StopMetricTimer(Command):
    """Stop a named latency timer and emit it with its outcome."""
    name: str
    outcome: str
    command_type: CommandType = CommandType.STOP_METRIC_TIMER


# =============================================================================
# Observability Commands
# =============================================================================

@dataclass(frozen=True)
class LogEvent(Command):
    """Request to emit a structured observability event."""
    event: dict[str, Any]
    command_type: CommandType = CommandType.LOG_EVENT


@dataclass(frozen=True)
class RecordTelemetry(Command):
    """Forward a named voice input event to the telemetry collaborator."""
    name: str
    details: dict[str, Any] = field(default_factory=dict)
    command_type: CommandType = CommandType.RECORD_TELEMETRY
