"""
Runtime execution context.

Provides Runtime with live access to the session-owned objects and the
external collaborators it executes commands against.

This module contains:
- Narrow Protocols (capabilities, not implementations)
- Zero orchestration logic
- Zero state mutation
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Sequence, runtime_checkable

from orchestrator.consent import ConsentRecord

if TYPE_CHECKING:
    from context.alternatives import AlternativesCache
    from context.field import FieldContext
    from context.modifications import ModificationAccounting, ModificationCounters
    from orchestrator.commands import TextEdit
    from session.voice_session import VoiceSession


# ---------------------------------------------------------------------
# Collaborator Protocols
# ---------------------------------------------------------------------

@runtime_checkable
class ConsentStoreProtocol(Protocol):
    def load_consent(self) -> ConsentRecord: ...

    def save_consent(self, record: ConsentRecord) -> None:
        """
        Persist the flags. May raise OSError; the runtime keeps the
        in-memory record regardless.
        """


@runtime_checkable
class RecognizerProtocol(Protocol):
    def begin(self, field_context: FieldContext, run_id: int) -> None:
        """
        Start listening. Results and cancellations come back later as
        events posted into the session.
        """

    def cancel(self, run_id: int) -> None: ...

    def is_available(self) -> bool: ...


@runtime_checkable
class UIShellProtocol(Protocol):
    def show_consent_dialog(self, message_parts: Sequence[str]) -> None: ...

    def dismiss_consent_dialog(self) -> None: ...

    def apply_text_edit(self, edit: TextEdit) -> None: ...

    def finish_composing(self) -> None: ...

    def show_suggestions(self, suggestions: Sequence[str]) -> None: ...

    def clear_suggestions(self) -> None: ...

    def switch_to_last_input_method(self) -> None: ...

    def show_punctuation_hint(self) -> bool:
        """Return True if the hint was actually displayed."""


@runtime_checkable
class TelemetryProtocol(Protocol):
    def record(self, name: str, details: dict[str, Any]) -> None: ...

    def record_modifications(self, counters: ModificationCounters) -> None: ...


# ---------------------------------------------------------------------
# Runtime Execution Context
# ---------------------------------------------------------------------

class RuntimeExecutionContext:
    """
    Imperative execution context for Runtime.

    Live views into session-owned resources, so Runtime does not need to
    synchronize or cache anything.

    Runtime is allowed to:
    - Call collaborators
    - Mutate the alternatives cache and modification counters

    Runtime is NOT allowed to:
    - Perform orchestration decisions
    """

    def __init__(self, session: VoiceSession) -> None:
        self.session = session

    # ----------------------------
    # Session metadata
    # ----------------------------

    @property
    def session_id(self) -> str:
        return self.session.session_id

    # ----------------------------
    # Session-owned objects
    # ----------------------------

    @property
    def alternatives(self) -> AlternativesCache:
        return self.session.alternatives

    @property
    def modifications(self) -> ModificationAccounting:
        return self.session.modifications

    # ----------------------------
    # Collaborators
    # ----------------------------

    @property
    def store(self) -> ConsentStoreProtocol | None:
        return self.session.store

    @property
    def recognizer(self) -> RecognizerProtocol:
        return self.session.recognizer

    @property
    def ui(self) -> UIShellProtocol | None:
        return self.session.ui

    @property
    def telemetry(self) -> TelemetryProtocol | None:
        return self.session.telemetry
