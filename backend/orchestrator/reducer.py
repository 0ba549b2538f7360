"""
Pure voice session reducer.

(state, event) -> (new_state, commands)

Rules:
- Pure: no side effects, no IO, no clocks.
- Deterministic: output depends only on inputs.
- Total: every (state, event) pair is handled or explicitly ignored (logged).

Out-of-order events are ignorable protocol violations: the recognizer
may deliver a stale result after a cancellation. They log "ignore" and
leave the state untouched.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from constants import METRIC_RECOGNITION_LATENCY
from context.alternatives import adapt_case
from context.field import FieldContext, field_can_do_voice
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
    TextEdit,
    UpdateCursor,
)
from orchestrator.consent import ConsentRecord, grant, needs_consent, warning_parts
from orchestrator.enums.mode import InputMode
from orchestrator.enums.state import SessionState
from orchestrator.events import (
    Backspace,
    CharacterTyped,
    ConsentResult,
    CursorWord,
    Event,
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
from orchestrator.state_dataclass import POST_RECOGNITION_STATES, VoiceSessionState


# =============================================================================
# Telemetry event names
# =============================================================================

TELEMETRY_WARNING_DIALOG_SHOWN = "warning_dialog_shown"
TELEMETRY_WARNING_DIALOG_OK = "warning_dialog_ok"
TELEMETRY_WARNING_DIALOG_CANCEL = "warning_dialog_cancel"
TELEMETRY_WARNING_DIALOG_DISMISSED = "warning_dialog_dismissed"
TELEMETRY_VOICE_INPUT_DELIVERED = "voice_input_delivered"
TELEMETRY_INPUT_ENDED = "input_ended"
TELEMETRY_TEXT_MODIFIED_BY_CHOOSE_SUGGESTION = "text_modified_by_choose_suggestion"

_RECOGNIZING_STATES = frozenset({SessionState.LISTENING, SessionState.RESULTS_PENDING})


# =============================================================================
# Small helpers
# =============================================================================

def _log(
    state: VoiceSessionState,
    event: Event,
    decision: str,
    details: dict[str, Any] | None = None,
) -> LogEvent:
    return LogEvent(
        event={
            "ts_ms": event.ts_ms,
            "state": state.state.value,
            "mode": state.mode.value,
            "event_type": event.event_type.value,
            "decision": decision,
            "recognition_run": state.recognition_run,
            "after_voice_input": state.after_voice_input,
            "details": details or {},
        }
    )


def _logs_last(commands: tuple[Command, ...]) -> tuple[Command, ...]:
    non_logs: list[Command] = []
    logs: list[Command] = []
    state_change_logs: list[Command] = []

    for command in commands:
        if isinstance(command, LogEvent):
            if command.event.get("decision") == "state_changed":
                state_change_logs.append(command)
            else:
                logs.append(command)
        else:
            non_logs.append(command)

    return tuple(non_logs + logs + state_change_logs)


def _ignore(
    state: VoiceSessionState, event: Event, reason: str
) -> tuple[VoiceSessionState, tuple[Command, ...]]:
    return state, (_log(state, event, "ignore", {"reason": reason}),)


def _transition(
    prev: VoiceSessionState,
    new_state: VoiceSessionState,
    event: Event,
    source: str,
    commands: tuple[Command, ...],
) -> tuple[VoiceSessionState, tuple[Command, ...]]:
    """Attach the state_changed log and order logs last."""
    return new_state, _logs_last(commands + (
        _log(
            new_state,
            event,
            "state_changed",
            {
                "from_state": prev.state.value,
                "to_state": new_state.state.value,
                "source": source,
            },
        ),
    ))


def _stale_run(state: VoiceSessionState, run_id: int | None) -> bool:
    return run_id is not None and run_id != state.recognition_run


def _reset_voice_bundle(state: VoiceSessionState) -> VoiceSessionState:
    """Clear per-session voice text bookkeeping (state-only helper)."""
    return replace(
        state,
        pending_result=None,
        inserted_text="",
        after_voice_input=False,
        immediately_after_voice_input=False,
        showing_voice_suggestions=False,
    )


def _capitalize_first(text: str) -> str:
    if not text:
        return text
    return text[0].upper() + text[1:]


# =============================================================================
# Shared transitions
# =============================================================================

def _request_consent(
    state: VoiceSessionState,
    event: Event,
    field_context: FieldContext,
    consent: ConsentRecord,
    source: str,
) -> tuple[VoiceSessionState, tuple[Command, ...]]:
    new_state = replace(
        state,
        state=SessionState.AWAITING_CONSENT,
        field_context=field_context,
        consent=consent,
    )
    return _transition(state, new_state, event, source, (
        ShowConsentDialog(message_parts=warning_parts(field_context)),
        RecordTelemetry(
            name=TELEMETRY_WARNING_DIALOG_SHOWN,
            details={"locale_supported": field_context.locale_supported},
        ),
        _log(new_state, event, "request_consent", {"locale": field_context.locale}),
    ))


def _begin_listening(
    state: VoiceSessionState,
    event: Event,
    field_context: FieldContext,
    consent: ConsentRecord,
    source: str,
    extra: tuple[Command, ...] = (),
) -> tuple[VoiceSessionState, tuple[Command, ...]]:
    run_id = state.recognition_run + 1
    new_state = _reset_voice_bundle(state)
    new_state = replace(
        new_state,
        state=SessionState.LISTENING,
        field_context=field_context,
        consent=consent,
        recognition_run=run_id,
    )
    return _transition(state, new_state, event, source, extra + (
        ClearSuggestions(),
        ResetModifications(),
        # Timer first: a recognizer may report back before begin() returns
        StartMetricTimer(name=METRIC_RECOGNITION_LATENCY),
        BeginRecognition(run_id=run_id, field_context=field_context),
        _log(new_state, event, "begin_recognition", {"run_id": run_id}),
    ))


def _apply_suggestion(
    state: VoiceSessionState, event: SuggestionChosen
) -> tuple[VoiceSessionState, tuple[Command, ...]]:
    cmds: list[Command] = []

    if state.after_voice_input and state.showing_voice_suggestions:
        # Aggregated edits are logged before the choice itself
        cmds.append(FlushModifications(emit=True))
        cmds.append(
            RecordTelemetry(
                name=TELEMETRY_TEXT_MODIFIED_BY_CHOOSE_SUGGESTION,
                details={"index": event.index, "text": event.chosen},
            )
        )

    cmds.append(SubstituteAlternative(old_word=event.old_word, chosen=event.chosen))
    cmds.append(ApplyTextEdit(edit=TextEdit.replace(event.old_word, event.chosen)))

    inserted_text = state.inserted_text
    if state.state is SessionState.HIGHLIGHTED and event.old_word in inserted_text:
        inserted_text = inserted_text.replace(event.old_word, event.chosen, 1)

    new_state = replace(
        state,
        inserted_text=inserted_text,
        showing_voice_suggestions=False,
    )
    cmds.append(
        _log(
            new_state,
            event,
            "suggestion_applied",
            {"old_word": event.old_word, "chosen": event.chosen},
        )
    )

    if state.state is SessionState.HIGHLIGHTED:
        return _transition(state, new_state, event, "suggestion_chosen", tuple(cmds))
    return new_state, _logs_last(tuple(cmds))


def _record_typed(
    state: VoiceSessionState,
    event: CharacterTyped | SeparatorTyped,
) -> tuple[VoiceSessionState, tuple[Command, ...]]:
    kind = (
        ModificationKind.INSERT_PUNCTUATION
        if isinstance(event, SeparatorTyped)
        else ModificationKind.INSERT
    )
    if state.state is SessionState.HIGHLIGHTED:
        new_state = replace(state, state=SessionState.COMMITTED)
        return _transition(state, new_state, event, "typed_while_highlighted", (
            FinishComposing(),
            RecordModification(kind=kind),
            _log(new_state, event, "commit_voice_input", {"kind": kind.value}),
        ))

    return state, _logs_last((
        RecordModification(kind=kind),
        _log(state, event, "record_modification", {"kind": kind.value}),
    ))


# =============================================================================
# Reducer entrypoint
# =============================================================================

def reduce(  # pylint: disable=too-many-return-statements,too-many-branches
    state: VoiceSessionState, event: Event
) -> tuple[VoiceSessionState, tuple[Command, ...]]:
    """
    Pure reducer for the voice session state machine.

    Given the current session state and a single event, returns:
    - the next state
    - a tuple of commands describing required side effects

    Properties:
    - Deterministic: no IO, clocks, or randomness
    - Total: every (state, event) pair is handled or explicitly ignored
    - Version-safe: ignores recognizer events with stale run ids
    """

    # ------------------------------------------------------------------
    # State-independent events
    # ------------------------------------------------------------------
    if isinstance(event, InputModeChanged):
        new_state = replace(state, mode=event.mode)
        return new_state, (
            _log(new_state, event, "input_mode_changed", {"mode": event.mode.value}),
        )

    if isinstance(event, FlushRequested):
        return state, (
            FlushModifications(emit=state.after_voice_input),
            _log(state, event, "flush_modifications"),
        )

    if isinstance(event, HideWindow):
        cmds: list[Command] = []
        new_state = state

        if state.state is SessionState.AWAITING_CONSENT:
            cmds.append(DismissConsentDialog())
            cmds.append(RecordTelemetry(name=TELEMETRY_WARNING_DIALOG_DISMISSED))
            new_state = replace(new_state, state=SessionState.IDLE)
        elif state.state in _RECOGNIZING_STATES:
            cmds.append(CancelRecognition(run_id=state.recognition_run))
            cmds.append(
                StopMetricTimer(name=METRIC_RECOGNITION_LATENCY, outcome="hidden")
            )
            new_state = replace(new_state, state=SessionState.IDLE, pending_result=None)

        if state.after_voice_input:
            cmds.append(RecordTelemetry(name=TELEMETRY_INPUT_ENDED))

        cmds.append(ClearAlternatives())
        new_state = replace(new_state, showing_voice_suggestions=False)
        cmds.append(_log(new_state, event, "hide_window"))

        if new_state.state is not state.state:
            return _transition(state, new_state, event, "hide_window", tuple(cmds))
        return new_state, _logs_last(tuple(cmds))

    if isinstance(event, SessionEnd):
        cmds = []

        if state.state is SessionState.AWAITING_CONSENT:
            cmds.append(DismissConsentDialog())
            cmds.append(RecordTelemetry(name=TELEMETRY_WARNING_DIALOG_DISMISSED))
        elif state.state in _RECOGNIZING_STATES:
            cmds.append(CancelRecognition(run_id=state.recognition_run))
            cmds.append(
                StopMetricTimer(name=METRIC_RECOGNITION_LATENCY, outcome="session_end")
            )
        elif state.state is SessionState.HIGHLIGHTED:
            cmds.append(FinishComposing())

        if state.after_voice_input:
            cmds.append(FlushModifications(emit=True))
            cmds.append(RecordTelemetry(name=TELEMETRY_INPUT_ENDED))
        else:
            cmds.append(FlushModifications(emit=False))

        new_state = _reset_voice_bundle(state)
        new_state = replace(new_state, state=SessionState.IDLE)
        cmds.append(_log(new_state, event, "session_end"))

        if state.state is SessionState.IDLE:
            return new_state, _logs_last(tuple(cmds))
        return _transition(state, new_state, event, "session_end", tuple(cmds))

    # ------------------------------------------------------------------
    # Suggestions and cursor tracking (any state outside recognition)
    # ------------------------------------------------------------------
    if isinstance(event, CursorWord):
        if state.state in _RECOGNIZING_STATES or state.state is SessionState.AWAITING_CONSENT:
            return _ignore(state, event, "cursor_word_while_recognizing")

        word = event.word.strip()
        suggestions = state.alternatives.lookup(word) if word else None
        if suggestions is None:
            return state, (_log(state, event, "no_alternatives", {"word": word}),)

        if event.first_char_is_upper is None:
            exemplar_is_upper = event.word[:1].isupper()
        else:
            exemplar_is_upper = event.first_char_is_upper

        adapted = tuple(adapt_case(suggestions, exemplar_is_upper))
        new_state = replace(state, showing_voice_suggestions=True)
        return new_state, (
            ShowSuggestions(word=word, suggestions=adapted),
            _log(new_state, event, "show_voice_suggestions", {
                "word": word,
                "count": len(adapted),
            }),
        )

    if isinstance(event, SuggestionChosen):
        if (
            state.state is SessionState.HIGHLIGHTED
            or (
                state.showing_voice_suggestions
                and state.state not in _RECOGNIZING_STATES
                and state.state is not SessionState.AWAITING_CONSENT
            )
        ):
            return _apply_suggestion(state, event)
        return _ignore(state, event, "not_showing_voice_suggestions")

    if isinstance(event, SelectionChanged):
        if not state.after_voice_input:
            return _ignore(state, event, "no_voice_input")
        return state, (
            UpdateCursor(
                cursor_pos=event.sel_end,
                selection_span=event.sel_end - event.sel_start,
            ),
            _log(state, event, "cursor_updated", {"cursor_pos": event.sel_end}),
        )

    if isinstance(event, SuggestionsRefreshed):
        cmds = []
        if state.after_voice_input and not state.immediately_after_voice_input:
            cmds.append(ShowPunctuationHint())
        new_state = replace(state, immediately_after_voice_input=False)
        cmds.append(_log(new_state, event, "suggestions_refreshed"))
        return new_state, tuple(cmds)

    # ------------------------------------------------------------------
    # IDLE
    # ------------------------------------------------------------------
    if state.state is SessionState.IDLE:
        if isinstance(event, StartRequested):
            if not field_can_do_voice(event.field_context):
                return _ignore(state, event, "field_not_eligible")
            if not event.recognizer_available:
                return _ignore(state, event, "recognizer_unavailable")
            if needs_consent(event.consent, event.field_context):
                return _request_consent(
                    state, event, event.field_context, event.consent, "start_requested"
                )
            return _begin_listening(
                state, event, event.field_context, event.consent, "start_requested"
            )

        if isinstance(event, InputViewStarted):
            # Voice mode may still owe the user its warning dialog
            if (
                state.mode is InputMode.VOICE
                and field_can_do_voice(event.field_context)
                and needs_consent(event.consent, event.field_context)
            ):
                return _request_consent(
                    state, event, event.field_context, event.consent, "input_view_started"
                )
            return state, (_log(state, event, "input_view_started"),)

        if isinstance(event, RecognitionCancelled):
            return _ignore(state, event, "cancel_while_idle")

        if isinstance(event, RecognitionResults):
            return _ignore(state, event, "results_while_idle")

        if isinstance(event, (CharacterTyped, SeparatorTyped, Backspace, RevertRequested)):
            return _ignore(state, event, "no_voice_input")

        return _ignore(state, event, "idle_unhandled")

    if isinstance(event, StartRequested):
        return _ignore(state, event, "start_while_active")

    if isinstance(event, InputViewStarted):
        return state, (_log(state, event, "input_view_started"),)

    # ------------------------------------------------------------------
    # AWAITING_CONSENT
    # ------------------------------------------------------------------
    if state.state is SessionState.AWAITING_CONSENT:
        if isinstance(event, ConsentResult):
            assert state.field_context is not None
            if event.granted:
                updated = grant(state.consent, state.field_context)
                return _begin_listening(
                    state,
                    event,
                    state.field_context,
                    updated,
                    "consent_granted",
                    extra=(
                        SaveConsent(record=updated),
                        RecordTelemetry(name=TELEMETRY_WARNING_DIALOG_OK),
                    ),
                )

            new_state = replace(state, state=SessionState.IDLE)
            return _transition(state, new_state, event, "consent_denied", (
                RecordTelemetry(name=TELEMETRY_WARNING_DIALOG_CANCEL),
                SwitchToLastInputMethod(),
                _log(new_state, event, "consent_denied"),
            ))

        return _ignore(state, event, "awaiting_consent_unhandled")

    # ------------------------------------------------------------------
    # LISTENING
    # ------------------------------------------------------------------
    if state.state is SessionState.LISTENING:
        if isinstance(event, RecognitionResults):
            if _stale_run(state, event.run_id):
                return _ignore(state, event, "results_stale")
            new_state = replace(
                state,
                state=SessionState.RESULTS_PENDING,
                pending_result=event.result,
            )
            return _transition(state, new_state, event, "results_delivered", (
                _log(new_state, event, "results_pending", {
                    "candidates": len(event.result.candidates),
                    "alternatives": len(event.result.alternatives),
                }),
            ))

        if isinstance(event, RecognitionCancelled):
            if _stale_run(state, event.run_id):
                return _ignore(state, event, "cancel_stale")

            cmds = [StopMetricTimer(name=METRIC_RECOGNITION_LATENCY, outcome="cancelled")]
            if state.mode is InputMode.VOICE:
                cmds.append(SwitchToLastInputMethod())
            # KEYBOARD mode: the host is already leaving voice mode

            new_state = replace(state, state=SessionState.IDLE)
            cmds.append(
                _log(new_state, event, "recognition_cancelled", {"reason": event.reason})
            )
            return _transition(state, new_state, event, "recognition_cancelled", tuple(cmds))

        return _ignore(state, event, "listening_unhandled")

    # ------------------------------------------------------------------
    # RESULTS_PENDING
    # ------------------------------------------------------------------
    if state.state is SessionState.RESULTS_PENDING:
        if isinstance(event, ResultsApplied):
            result = state.pending_result
            if result is None or not result.candidates:
                new_state = replace(state, state=SessionState.IDLE, pending_result=None)
                return _transition(state, new_state, event, "results_empty", (
                    StopMetricTimer(name=METRIC_RECOGNITION_LATENCY, outcome="empty"),
                    _log(new_state, event, "results_empty"),
                ))

            best = result.candidates[0]
            if event.capitalize_first_word:
                best = _capitalize_first(best)

            new_state = replace(
                state,
                state=SessionState.HIGHLIGHTED,
                pending_result=None,
                inserted_text=best,
                after_voice_input=True,
                immediately_after_voice_input=True,
                showing_voice_suggestions=False,
            )
            return _transition(state, new_state, event, "results_applied", (
                StopMetricTimer(name=METRIC_RECOGNITION_LATENCY, outcome="delivered"),
                ApplyTextEdit(edit=TextEdit.insert(best)),
                IngestAlternatives(alternatives=result.alternatives),
                RecordTelemetry(
                    name=TELEMETRY_VOICE_INPUT_DELIVERED,
                    details={"length": len(best)},
                ),
                _log(new_state, event, "voice_input_delivered", {"length": len(best)}),
            ))

        if isinstance(event, RecognitionResults):
            return _ignore(state, event, "results_already_pending")

        return _ignore(state, event, "results_pending_unhandled")

    # ------------------------------------------------------------------
    # HIGHLIGHTED / COMMITTED / REVERTED
    # ------------------------------------------------------------------
    if state.state in POST_RECOGNITION_STATES:
        if isinstance(event, (CharacterTyped, SeparatorTyped)):
            return _record_typed(state, event)

        if isinstance(event, Backspace):
            return state, _logs_last((
                RecordModification(
                    kind=ModificationKind.DELETE,
                    count=1,
                    cursor_pos=event.cursor_pos,
                    selection_length=event.selection_length,
                ),
                _log(state, event, "record_modification", {
                    "kind": ModificationKind.DELETE.value,
                    "selection_length": event.selection_length,
                }),
            ))

        if isinstance(event, RevertRequested):
            if state.state is not SessionState.HIGHLIGHTED:
                return _ignore(state, event, "revert_not_highlighted")
            length = len(state.inserted_text)
            new_state = replace(state, state=SessionState.REVERTED, inserted_text="")
            return _transition(state, new_state, event, "revert_requested", (
                ApplyTextEdit(edit=TextEdit.delete(length)),
                RecordModification(kind=ModificationKind.REVERT, count=length),
                ClearSuggestions(),
                _log(new_state, event, "revert_voice_input", {"length": length}),
            ))

        if isinstance(event, (RecognitionResults, RecognitionCancelled, ResultsApplied)):
            return _ignore(state, event, "recognition_event_after_results")

        return _ignore(state, event, "post_recognition_unhandled")

    return _ignore(state, event, "unknown_state")
