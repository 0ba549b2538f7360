"""
Voice session container and public API.

- Owns the runtime (and through it the authoritative reducer state)
- Owns the alternatives cache and modification counters
- Holds the external collaborators (store, recognizer, UI shell, telemetry)
- Translates host calls into events and reads results off the executed
  commands
- Contains no orchestration logic

All methods must be called on the host's single event thread. Callbacks
from other threads go through session.pump.EventPump.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from constants import DEFAULT_SUPPORTED_VOICE_LOCALES
from context.alternatives import AlternativesCache
from context.field import FieldContext, VoiceButtonState, voice_button_state
from context.modifications import ModificationAccounting, ModificationCounters
from orchestrator.commands import (
    Action,
    ApplyTextEdit,
    BeginRecognition,
    Command,
    ShowConsentDialog,
    ShowSuggestions,
    TextEdit,
)
from orchestrator.consent import ConsentRecord
from orchestrator.enums.mode import InputMode
from orchestrator.enums.state import SessionState
from orchestrator.enums.voice_mode import VoiceButtonMode
from orchestrator.events import (
    Backspace,
    CharacterTyped,
    ConsentResult,
    CursorWord,
    Event,
    EventType,
    FlushRequested,
    HideWindow,
    InputModeChanged,
    InputViewStarted,
    RecognitionCancelled,
    RecognitionResults,
    ResultsApplied,
    RevertRequested,
    SelectionChanged,
    SeparatorTyped,
    SessionEnd,
    StartRequested,
    SuggestionChosen,
    SuggestionsRefreshed,
)
from orchestrator.runtime import Runtime
from orchestrator.runtime_context import (
    ConsentStoreProtocol,
    RecognizerProtocol,
    RuntimeExecutionContext,
    TelemetryProtocol,
    UIShellProtocol,
)
from orchestrator.state_dataclass import RecognitionResult, VoiceSessionState


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def new_session_id() -> str:
    return f"vs_{uuid.uuid4().hex[:12]}"


def _first(commands: tuple[Command, ...], kind: type) -> Any:
    for cmd in commands:
        if isinstance(cmd, kind):
            return cmd
    return None


# ---------------------------------------------------------------------
# VoiceSession
# ---------------------------------------------------------------------

@dataclass
class VoiceSession:  # pylint: disable=too-many-instance-attributes,too-many-public-methods
    """Mutable runtime container for a single voice input session."""

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    recognizer: RecognizerProtocol
    store: ConsentStoreProtocol | None = None
    ui: UIShellProtocol | None = None
    telemetry: TelemetryProtocol | None = None

    # ------------------------------------------------------------------
    # Identity / preferences
    # ------------------------------------------------------------------

    session_id: str = field(default_factory=new_session_id)
    voice_mode: VoiceButtonMode = VoiceButtonMode.MAIN
    supported_locales: frozenset[str] = frozenset(DEFAULT_SUPPORTED_VOICE_LOCALES)

    # ------------------------------------------------------------------
    # Session-owned objects (constructed in __post_init__)
    # ------------------------------------------------------------------

    alternatives: AlternativesCache = field(init=False)
    modifications: ModificationAccounting = field(init=False)
    runtime: Runtime = field(init=False)

    def __post_init__(self) -> None:
        self.alternatives = AlternativesCache(session_id=self.session_id)
        self.modifications = ModificationAccounting()
        self.runtime = Runtime(
            initial_state=VoiceSessionState(alternatives=self.alternatives),
            context=RuntimeExecutionContext(self),
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self.runtime.state.state

    @property
    def snapshot(self) -> VoiceSessionState:
        """Full immutable reducer state."""
        return self.runtime.state

    @property
    def consent(self) -> ConsentRecord:
        return self.runtime.state.consent

    # ------------------------------------------------------------------
    # Event entry point
    # ------------------------------------------------------------------

    def dispatch(self, event: Event) -> tuple[Command, ...]:
        """Feed one event through the runtime; returns the executed commands."""
        return self.runtime.handle_event(event)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(
        self,
        field_context: FieldContext,
        consent_record: ConsentRecord | None = None,
    ) -> Action | None:
        """
        Request voice input into field_context.

        Returns the action taken, or None if the request was ignored
        (password field, recognizer unavailable, or a session already
        in progress).
        """
        commands = self.dispatch(StartRequested(
            event_type=EventType.START_REQUESTED,
            ts_ms=_now_ms(),
            field_context=field_context,
            consent=self._resolve_consent(consent_record),
            recognizer_available=self.recognizer.is_available(),
        ))
        if _first(commands, ShowConsentDialog) is not None:
            return Action.SHOW_CONSENT_DIALOG
        if _first(commands, BeginRecognition) is not None:
            return Action.BEGIN_RECOGNITION
        return None

    def on_consent_result(self, granted: bool) -> None:
        self.dispatch(ConsentResult(
            event_type=EventType.CONSENT_RESULT,
            ts_ms=_now_ms(),
            granted=granted,
        ))

    def on_start_input_view(
        self,
        field_context: FieldContext,
        consent_record: ConsentRecord | None = None,
    ) -> None:
        self.dispatch(InputViewStarted(
            event_type=EventType.INPUT_VIEW_STARTED,
            ts_ms=_now_ms(),
            field_context=field_context,
            consent=self._resolve_consent(consent_record),
        ))

    def on_input_mode_changed(self, mode: InputMode) -> None:
        self.dispatch(InputModeChanged(
            event_type=EventType.INPUT_MODE_CHANGED,
            ts_ms=_now_ms(),
            mode=mode,
        ))

    def on_hide_window(self) -> None:
        self.dispatch(HideWindow(event_type=EventType.HIDE_WINDOW, ts_ms=_now_ms()))

    def end_session(self) -> ModificationCounters:
        """
        End the session and return the flushed modification counters.

        The counters are reset to zero afterwards.
        """
        self.dispatch(SessionEnd(event_type=EventType.SESSION_END, ts_ms=_now_ms()))
        return self.runtime.last_flushed

    def flush_modifications(self) -> ModificationCounters:
        """Emit and reset the counters without leaving the current state."""
        self.dispatch(FlushRequested(event_type=EventType.FLUSH_REQUESTED, ts_ms=_now_ms()))
        return self.runtime.last_flushed

    def close(self) -> None:
        """Release runtime resources; open latency timers are dropped unreported."""
        self.runtime.shutdown()

    # ------------------------------------------------------------------
    # Recognizer callbacks
    # ------------------------------------------------------------------

    def on_recognition_result(
        self,
        candidates: Sequence[str],
        alternatives: Mapping[str, Sequence[str]] | None = None,
        capitalize_first_word: bool = False,
        run_id: int | None = None,
    ) -> TextEdit:
        """
        Deliver recognizer output and apply it.

        Returns the edit inserted into the document; empty if the result
        was empty, stale or arrived outside LISTENING.
        """
        self.dispatch(RecognitionResults(
            event_type=EventType.RECOGNITION_RESULTS,
            ts_ms=_now_ms(),
            result=RecognitionResult.of(candidates, alternatives),
            run_id=run_id,
        ))
        if self.state is not SessionState.RESULTS_PENDING:
            return TextEdit.none()

        commands = self.dispatch(ResultsApplied(
            event_type=EventType.RESULTS_APPLIED,
            ts_ms=_now_ms(),
            capitalize_first_word=capitalize_first_word,
        ))
        return self._edit_from(commands)

    def on_cancel(self, reason: str = "cancelled", run_id: int | None = None) -> None:
        self.dispatch(RecognitionCancelled(
            event_type=EventType.RECOGNITION_CANCELLED,
            ts_ms=_now_ms(),
            reason=reason,
            run_id=run_id,
        ))

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    def on_cursor_word(
        self, word: str, first_char_is_upper: bool | None = None
    ) -> list[str] | None:
        """Suggestions to display for the word at the cursor, or None."""
        commands = self.dispatch(CursorWord(
            event_type=EventType.CURSOR_WORD,
            ts_ms=_now_ms(),
            word=word,
            first_char_is_upper=first_char_is_upper,
        ))
        shown = _first(commands, ShowSuggestions)
        if shown is None:
            return None
        return list(shown.suggestions)

    def on_suggestion_chosen(self, old_word: str, chosen: str, index: int = -1) -> None:
        self.dispatch(SuggestionChosen(
            event_type=EventType.SUGGESTION_CHOSEN,
            ts_ms=_now_ms(),
            old_word=old_word,
            chosen=chosen,
            index=index,
        ))

    def on_suggestions_refreshed(self) -> None:
        self.dispatch(SuggestionsRefreshed(
            event_type=EventType.SUGGESTIONS_REFRESHED,
            ts_ms=_now_ms(),
        ))

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def on_character_typed(self) -> None:
        self.dispatch(CharacterTyped(event_type=EventType.CHARACTER_TYPED, ts_ms=_now_ms()))

    def on_separator_typed(self) -> None:
        self.dispatch(SeparatorTyped(event_type=EventType.SEPARATOR_TYPED, ts_ms=_now_ms()))

    def on_backspace(
        self,
        selection_length: int | None = None,
        cursor_pos: int | None = None,
    ) -> None:
        self.dispatch(Backspace(
            event_type=EventType.BACKSPACE,
            ts_ms=_now_ms(),
            selection_length=selection_length,
            cursor_pos=cursor_pos,
        ))

    def on_selection_changed(self, sel_start: int, sel_end: int) -> None:
        self.dispatch(SelectionChanged(
            event_type=EventType.SELECTION_CHANGED,
            ts_ms=_now_ms(),
            sel_start=sel_start,
            sel_end=sel_end,
        ))

    def on_revert(self) -> TextEdit:
        """Undo the highlighted voice text; returns the deletion applied."""
        commands = self.dispatch(RevertRequested(
            event_type=EventType.REVERT_REQUESTED,
            ts_ms=_now_ms(),
        ))
        return self._edit_from(commands)

    def field_context(
        self,
        locale: str,
        *,
        field_is_password: bool = False,
        enabled_languages: Iterable[str] = (),
        private_ime_options: str | None = None,
    ) -> FieldContext:
        """Snapshot a field against this session's supported locales."""
        return FieldContext(
            field_is_password=field_is_password,
            locale=locale,
            enabled_languages=frozenset(enabled_languages),
            private_ime_options=private_ime_options,
            supported_locales=self.supported_locales,
        )

    # ------------------------------------------------------------------
    # Microphone key
    # ------------------------------------------------------------------

    def voice_button(self, field_context: FieldContext) -> VoiceButtonState:
        return voice_button_state(
            field_context, self.voice_mode, self.recognizer.is_available()
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _resolve_consent(self, consent_record: ConsentRecord | None) -> ConsentRecord:
        if consent_record is not None:
            return consent_record
        stored = self.store.load_consent() if self.store is not None else ConsentRecord()
        held = self.runtime.state.consent
        # In-memory flags survive a failed save
        return ConsentRecord(
            has_used_voice_input=(
                stored.has_used_voice_input or held.has_used_voice_input
            ),
            has_used_voice_input_unsupported_locale=(
                stored.has_used_voice_input_unsupported_locale
                or held.has_used_voice_input_unsupported_locale
            ),
        )

    @staticmethod
    def _edit_from(commands: tuple[Command, ...]) -> TextEdit:
        applied = _first(commands, ApplyTextEdit)
        return applied.edit if applied is not None else TextEdit.none()
