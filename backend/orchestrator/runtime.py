"""
Runtime execution shell for a single voice session.

Responsibilities:
- Own the authoritative session state
- Call the pure reducer
- Execute commands with side effects (recognizer, UI shell, persistence,
  telemetry, alternatives cache, modification counters)
- Run latency timers

Non-responsibilities:
- No orchestration decisions
- No event queueing (see session.pump)
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from context.modifications import ModificationCounters
from observability import metrics
from observability.logger import log_event
from orchestrator.commands import (
    ApplyTextEdit,
    BeginRecognition,
    CancelRecognition,
    ClearAlternatives,
    ClearSuggestions,
    Command,
    DismissConsentDialog,
    FinishComposing,
    FlushModifications,
    IngestAlternatives,
    LogEvent,
    ModificationKind,
    RecordModification,
    RecordTelemetry,
    ResetModifications,
    SaveConsent,
    ShowConsentDialog,
    ShowPunctuationHint,
    ShowSuggestions,
    StartMetricTimer,
    StopMetricTimer,
    SubstituteAlternative,
    SwitchToLastInputMethod,
    UpdateCursor,
)
from orchestrator.events import Event
from orchestrator.reducer import reduce
from orchestrator.state_dataclass import VoiceSessionState

if TYPE_CHECKING:
    from orchestrator.runtime_context import RuntimeExecutionContext


TELEMETRY_PUNCTUATION_HINT_DISPLAYED = "punctuation_hint_displayed"


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class Runtime:
    """
    Runtime execution boundary for a single voice session.

    Architectural role:
    Runtime is the bridge between the pure reducer and the imperative
    world (collaborators, session-owned objects, logging, time).

    Guarantees:
    - Reducer is called exactly once per incoming event
    - State is updated before any side effects execute
    - Commands are executed in reducer-emitted order
    - A failing consent save never aborts the session

    All calls happen on the host's single event thread; Runtime takes
    no locks.
    """

    def __init__(
        self,
        *,
        initial_state: VoiceSessionState,
        context: RuntimeExecutionContext,
    ) -> None:
        self._state = initial_state
        self._ctx = context
        # metric name -> timer id
        self._timers: dict[str, str] = {}
        self.last_flushed: ModificationCounters = ModificationCounters()

    @property
    def state(self) -> VoiceSessionState:
        """
        Current immutable session state.

        Only Runtime replaces it, via the reducer.
        """
        return self._state

    def handle_event(self, event: Event) -> tuple[Command, ...]:
        """
        Process a single event through the reducer and execute its commands.

        This is the *only* entry point for events affecting session state.
        Returns the executed commands so callers can derive their results.
        """
        new_state, commands = reduce(self._state, event)
        self._state = new_state

        for cmd in commands:
            self._execute_command(cmd)

        return commands

    def shutdown(self) -> None:
        """Drop any running latency timers without emitting them."""
        for timer_id in self._timers.values():
            metrics.discard_timer(timer_id)
        self._timers.clear()

    # ------------------------------------------------------------------
    # Command execution (side effects)
    # ------------------------------------------------------------------

    def _execute_command(self, cmd: Command) -> None:  # pylint: disable=too-many-branches
        """Execute a single command with side effects."""

        if isinstance(cmd, LogEvent):
            log_event({
                **cmd.event,
                "session_id": self._ctx.session_id,
            })

        # ------------------------------------------------------------
        # Consent
        # ------------------------------------------------------------

        elif isinstance(cmd, ShowConsentDialog):
            if self._ctx.ui is not None:
                self._ctx.ui.show_consent_dialog(cmd.message_parts)

        elif isinstance(cmd, DismissConsentDialog):
            if self._ctx.ui is not None:
                self._ctx.ui.dismiss_consent_dialog()

        elif isinstance(cmd, SaveConsent):
            self._save_consent(cmd)

        # ------------------------------------------------------------
        # Recognizer
        # ------------------------------------------------------------

        elif isinstance(cmd, BeginRecognition):
            self._ctx.recognizer.begin(cmd.field_context, cmd.run_id)
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "RECOGNITION_BEGIN_EXECUTED",
                "session_id": self._ctx.session_id,
                "run_id": cmd.run_id,
                "locale": cmd.field_context.locale,
            })

        elif isinstance(cmd, CancelRecognition):
            self._ctx.recognizer.cancel(cmd.run_id)

        # ------------------------------------------------------------
        # UI shell
        # ------------------------------------------------------------

        elif isinstance(cmd, SwitchToLastInputMethod):
            if self._ctx.ui is not None:
                self._ctx.ui.switch_to_last_input_method()

        elif isinstance(cmd, ApplyTextEdit):
            if self._ctx.ui is not None and not cmd.edit.is_empty:
                self._ctx.ui.apply_text_edit(cmd.edit)

        elif isinstance(cmd, FinishComposing):
            if self._ctx.ui is not None:
                self._ctx.ui.finish_composing()

        elif isinstance(cmd, ShowSuggestions):
            if self._ctx.ui is not None:
                self._ctx.ui.show_suggestions(list(cmd.suggestions))

        elif isinstance(cmd, ClearSuggestions):
            if self._ctx.ui is not None:
                self._ctx.ui.clear_suggestions()

        elif isinstance(cmd, ShowPunctuationHint):
            if self._ctx.ui is not None and self._ctx.ui.show_punctuation_hint():
                self._record_telemetry(TELEMETRY_PUNCTUATION_HINT_DISPLAYED, {})

        # ------------------------------------------------------------
        # Alternatives cache
        # ------------------------------------------------------------

        elif isinstance(cmd, IngestAlternatives):
            self._ctx.alternatives.ingest(cmd.alternatives)

        elif isinstance(cmd, SubstituteAlternative):
            self._ctx.alternatives.substitute(cmd.old_word, cmd.chosen)

        elif isinstance(cmd, ClearAlternatives):
            self._ctx.alternatives.clear()

        # ------------------------------------------------------------
        # Modification accounting
        # ------------------------------------------------------------

        elif isinstance(cmd, RecordModification):
            self._record_modification(cmd)

        elif isinstance(cmd, UpdateCursor):
            self._ctx.modifications.set_cursor(cmd.cursor_pos, cmd.selection_span)

        elif isinstance(cmd, ResetModifications):
            self._ctx.modifications.reset()

        elif isinstance(cmd, FlushModifications):
            counters = self._ctx.modifications.flush()
            self.last_flushed = counters
            if cmd.emit and self._ctx.telemetry is not None:
                self._ctx.telemetry.record_modifications(counters)

        # ------------------------------------------------------------
        # Metric timers
        # ------------------------------------------------------------

        elif isinstance(cmd, StartMetricTimer):
            previous = self._timers.pop(cmd.name, None)
            if previous is not None:
                metrics.discard_timer(previous)
            self._timers[cmd.name] = metrics.start_timer(cmd.name)

        elif isinstance(cmd, StopMetricTimer):
            timer_id = self._timers.pop(cmd.name, None)
            if timer_id is not None:
                metrics.stop_timer(
                    timer_id,
                    session_id=self._ctx.session_id,
                    state=self._state.state.value,
                    details={"outcome": cmd.outcome},
                )

        elif isinstance(cmd, RecordTelemetry):
            self._record_telemetry(cmd.name, cmd.details)

        else:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "UNKNOWN_COMMAND",
                "session_id": self._ctx.session_id,
                "command": type(cmd).__name__,
            })

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _save_consent(self, cmd: SaveConsent) -> None:
        store = self._ctx.store
        if store is None:
            return
        try:
            store.save_consent(cmd.record)
        except OSError as exc:
            # Best effort: a lost write only re-shows the dialog next time
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "consent_save_failed",
                "session_id": self._ctx.session_id,
                "error": f"{type(exc).__name__}: {exc}",
            })

    def _record_modification(self, cmd: RecordModification) -> None:
        accounting = self._ctx.modifications
        if cmd.kind is ModificationKind.INSERT:
            accounting.record_insert(cmd.count)
        elif cmd.kind is ModificationKind.INSERT_PUNCTUATION:
            accounting.record_insert_punctuation(cmd.count)
        elif cmd.kind is ModificationKind.DELETE:
            accounting.record_delete(
                cmd.count,
                cursor_pos=cmd.cursor_pos,
                selection_length=cmd.selection_length,
            )
        elif cmd.kind is ModificationKind.REVERT:
            accounting.record_deleted_text(cmd.count)

    def _record_telemetry(self, name: str, details: dict) -> None:
        if self._ctx.telemetry is not None:
            self._ctx.telemetry.record(name, details)
