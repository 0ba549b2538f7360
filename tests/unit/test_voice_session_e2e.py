"""
End-to-end voice session scenarios through the public session API.

Fake collaborators record every call; the JSONL sink is captured.
"""

import json
from typing import Any

import pytest

from adapters.recognizer.base import RecognizerAdapter
from context.field import FieldContext
from context.modifications import ModificationCounters
from observability import logger
from orchestrator.commands import Action, TextEdit
from orchestrator.consent import ConsentRecord
from orchestrator.enums.mode import InputMode
from orchestrator.enums.state import SessionState
from orchestrator.enums.voice_mode import VoiceButtonMode
from session.voice_session import VoiceSession


FC = FieldContext(field_is_password=False, locale="en_US")
GRANTED = ConsentRecord(has_used_voice_input=True)


# ---------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------

class FakeStore:
    def __init__(self, record=None, fail=False):
        self.record = record or ConsentRecord()
        self.fail = fail
        self.saved = []

    def load_consent(self):
        return self.record

    def save_consent(self, record):
        if self.fail:
            raise OSError("disk full")
        self.saved.append(record)
        self.record = record


class FakeRecognizer(RecognizerAdapter):
    def __init__(self, available=True):
        self.available = available
        self.begun = []
        self.cancelled = []

    def begin(self, field_context, run_id):
        self.begun.append((field_context, run_id))

    def cancel(self, run_id):
        self.cancelled.append(run_id)

    def is_available(self):
        return self.available


class FakeUI:
    def __init__(self, hint_shown=True):
        self.dialogs = []
        self.dismissed = 0
        self.edits = []
        self.finished = 0
        self.suggestions = []
        self.cleared = 0
        self.switched = 0
        self.hint_shown = hint_shown
        self.hints = 0

    def show_consent_dialog(self, message_parts):
        self.dialogs.append(tuple(message_parts))

    def dismiss_consent_dialog(self):
        self.dismissed += 1

    def apply_text_edit(self, edit):
        self.edits.append(edit)

    def finish_composing(self):
        self.finished += 1

    def show_suggestions(self, suggestions):
        self.suggestions.append(list(suggestions))

    def clear_suggestions(self):
        self.cleared += 1

    def switch_to_last_input_method(self):
        self.switched += 1

    def show_punctuation_hint(self):
        self.hints += 1
        return self.hint_shown


class FakeTelemetry:
    def __init__(self):
        self.events = []
        self.modifications = []

    def record(self, name, details):
        self.events.append((name, dict(details)))

    def record_modifications(self, counters):
        self.modifications.append(counters)

    def names(self):
        return [name for name, _ in self.events]


@pytest.fixture
def log_lines(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    captured: list[dict[str, Any]] = []
    monkeypatch.setattr(logger, "_print", lambda line: captured.append(json.loads(line)))
    monkeypatch.setattr(logger, "_enabled", True)
    return captured


def _session(store=None, recognizer=None, ui=None, telemetry=None, **kwargs):
    return VoiceSession(
        store=store or FakeStore(GRANTED),
        recognizer=recognizer or FakeRecognizer(),
        ui=ui or FakeUI(),
        telemetry=telemetry or FakeTelemetry(),
        **kwargs,
    )


# ---------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------

def test_dictate_then_type_then_end(log_lines):
    session = _session()

    assert session.start(FC, GRANTED) is Action.BEGIN_RECOGNITION
    assert session.state is SessionState.LISTENING

    edit = session.on_recognition_result(["hello world"], {}, True)
    assert edit == TextEdit.insert("Hello world")
    assert session.state is SessionState.HIGHLIGHTED

    assert session.on_cursor_word("world", False) is None

    session.on_character_typed()
    assert session.state is SessionState.COMMITTED

    counters = session.end_session()
    assert counters == ModificationCounters(inserted_chars=1)
    assert session.modifications.peek() == ModificationCounters()
    assert session.state is SessionState.IDLE
    assert session.telemetry.modifications == [ModificationCounters(inserted_chars=1)]

    metric_lines = [l for l in log_lines if l.get("event_type") == "METRIC_TIMER"]
    assert [l["metric"] for l in metric_lines] == ["recognition_latency"]
    assert metric_lines[0]["details"] == {"outcome": "delivered"}
    assert all(l.get("session_id") == session.session_id for l in log_lines if "decision" in l)


def test_first_use_goes_through_consent_dialog(log_lines):
    store = FakeStore()
    recognizer = FakeRecognizer()
    ui = FakeUI()
    telemetry = FakeTelemetry()
    session = _session(store=store, recognizer=recognizer, ui=ui, telemetry=telemetry)

    assert session.start(FC) is Action.SHOW_CONSENT_DIALOG
    assert session.state is SessionState.AWAITING_CONSENT
    assert len(ui.dialogs) == 1
    assert recognizer.begun == []

    session.on_consent_result(True)

    assert session.state is SessionState.LISTENING
    assert store.saved == [ConsentRecord(has_used_voice_input=True)]
    assert recognizer.begun == [(FC, 1)]
    assert telemetry.names() == ["warning_dialog_shown", "warning_dialog_ok"]


def test_consent_denied_switches_back(log_lines):
    ui = FakeUI()
    session = _session(store=FakeStore(), ui=ui)

    session.start(FC)
    session.on_consent_result(False)

    assert session.state is SessionState.IDLE
    assert ui.switched == 1
    assert session.consent == ConsentRecord()


def test_failed_consent_save_keeps_in_memory_record(log_lines):
    store = FakeStore(fail=True)
    session = _session(store=store)

    session.start(FC)
    session.on_consent_result(True)

    assert session.state is SessionState.LISTENING
    assert any(l["event_type"] == "consent_save_failed" for l in log_lines)

    session.end_session()

    # the store still says "never used", the session remembers
    assert session.start(FC) is Action.BEGIN_RECOGNITION


def test_cancel_is_idempotent_and_drops_late_results(log_lines):
    recognizer = FakeRecognizer()
    ui = FakeUI()
    session = _session(recognizer=recognizer, ui=ui)

    session.start(FC, GRANTED)
    session.on_cancel("timeout", run_id=1)
    assert session.state is SessionState.IDLE
    assert ui.switched == 1

    session.on_cancel()
    session.on_cancel()
    assert session.state is SessionState.IDLE
    assert ui.switched == 1

    edit = session.on_recognition_result(["too late"], run_id=1)
    assert edit == TextEdit.none()
    assert session.state is SessionState.IDLE
    assert ui.edits == []


def test_stale_run_results_after_restart_are_ignored(log_lines):
    session = _session()

    session.start(FC, GRANTED)
    session.on_cancel(run_id=1)
    session.start(FC, GRANTED)

    assert session.on_recognition_result(["old"], run_id=1) == TextEdit.none()
    assert session.state is SessionState.LISTENING
    assert session.on_recognition_result(["new"], run_id=2) == TextEdit.insert("new")


def test_keyboard_mode_cancel_takes_no_action(log_lines):
    ui = FakeUI()
    session = _session(ui=ui)

    session.start(FC, GRANTED)
    session.on_input_mode_changed(InputMode.KEYBOARD)
    session.on_cancel()

    assert session.state is SessionState.IDLE
    assert ui.switched == 0


def test_empty_results_insert_nothing(log_lines):
    ui = FakeUI()
    session = _session(ui=ui)

    session.start(FC, GRANTED)

    assert session.on_recognition_result([], {}) == TextEdit.none()
    assert session.state is SessionState.IDLE
    assert ui.edits == []


def test_choose_alternative_and_offer_original_back(log_lines):
    ui = FakeUI()
    telemetry = FakeTelemetry()
    session = _session(ui=ui, telemetry=telemetry)

    session.start(FC, GRANTED)
    session.on_recognition_result(
        ["i like flower"], {"flower": ["flour", "flowers"]}, False
    )

    assert session.on_cursor_word("Flower", True) == ["Flour", "Flowers"]
    assert session.on_cursor_word("flower") == ["flour", "flowers"]

    session.on_character_typed()
    session.on_suggestion_chosen("flower", "flour", index=0)

    assert session.state is SessionState.COMMITTED
    assert ui.edits[-1] == TextEdit.replace("flower", "flour")
    # counters were flushed before the choice was logged
    assert telemetry.modifications == [ModificationCounters(inserted_chars=1)]
    assert "text_modified_by_choose_suggestion" in telemetry.names()

    offered = session.on_cursor_word("flour")
    assert offered is not None
    assert "flower" in offered
    assert "flour" not in offered


def test_choose_alternative_while_highlighted_stays_highlighted(log_lines):
    session = _session()

    session.start(FC, GRANTED)
    session.on_recognition_result(["flower"], {"flower": ["flour"]})
    session.on_suggestion_chosen("flower", "flour")

    assert session.state is SessionState.HIGHLIGHTED
    assert session.on_revert() == TextEdit.delete(len("flour"))


def test_revert_counts_deleted_text(log_lines):
    ui = FakeUI()
    session = _session(ui=ui)

    session.start(FC, GRANTED)
    session.on_recognition_result(["hello"])

    edit = session.on_revert()

    assert edit == TextEdit.delete(5)
    assert ui.edits == [TextEdit.insert("hello"), TextEdit.delete(5)]
    assert session.state is SessionState.REVERTED
    assert session.end_session() == ModificationCounters(deleted_chars=5)


def test_backspace_accounting_follows_cursor(log_lines):
    session = _session()

    session.start(FC, GRANTED)
    session.on_recognition_result(["hello world"])

    session.on_selection_changed(0, 0)
    session.on_backspace()
    assert session.modifications.peek().deleted_chars == 0

    session.on_selection_changed(4, 7)
    session.on_backspace()
    assert session.modifications.peek().deleted_chars == 3

    session.on_backspace(selection_length=0, cursor_pos=3)
    assert session.modifications.peek().deleted_chars == 4

    session.on_separator_typed()
    assert session.end_session() == ModificationCounters(
        inserted_punctuation=1,
        deleted_chars=4,
    )


def test_edits_before_voice_input_are_not_counted(log_lines):
    session = _session()

    session.on_character_typed()
    session.on_backspace()

    assert session.end_session() == ModificationCounters()
    assert session.telemetry.modifications == []


def test_flush_modifications_keeps_state(log_lines):
    session = _session()

    session.start(FC, GRANTED)
    session.on_recognition_result(["hi"])
    session.on_character_typed()

    assert session.flush_modifications() == ModificationCounters(inserted_chars=1)
    assert session.state is SessionState.COMMITTED
    assert session.modifications.peek().is_empty()


def test_punctuation_hint_after_first_refresh(log_lines):
    ui = FakeUI()
    telemetry = FakeTelemetry()
    session = _session(ui=ui, telemetry=telemetry)

    session.start(FC, GRANTED)
    session.on_recognition_result(["hello"])

    session.on_suggestions_refreshed()
    assert ui.hints == 0

    session.on_suggestions_refreshed()
    assert ui.hints == 1
    assert "punctuation_hint_displayed" in telemetry.names()


def test_hide_window_clears_alternatives(log_lines):
    telemetry = FakeTelemetry()
    session = _session(telemetry=telemetry)

    session.start(FC, GRANTED)
    session.on_recognition_result(["flower"], {"flower": ["flour"]})
    assert len(session.alternatives) == 1

    session.on_hide_window()

    assert len(session.alternatives) == 0
    assert "input_ended" in telemetry.names()


def test_hide_window_while_listening_cancels_recognizer(log_lines):
    recognizer = FakeRecognizer()
    session = _session(recognizer=recognizer)

    session.start(FC, GRANTED)
    session.on_hide_window()

    assert recognizer.cancelled == [1]
    assert session.state is SessionState.IDLE


def test_start_input_view_reshows_pending_warning(log_lines):
    ui = FakeUI()
    session = _session(store=FakeStore(), ui=ui)

    session.on_start_input_view(FC)

    assert session.state is SessionState.AWAITING_CONSENT
    assert len(ui.dialogs) == 1


def test_password_field_is_refused(log_lines):
    recognizer = FakeRecognizer()
    session = _session(recognizer=recognizer)

    assert session.start(FieldContext(field_is_password=True, locale="en_US")) is None
    assert session.state is SessionState.IDLE
    assert recognizer.begun == []


def test_voice_button_state(log_lines):
    session = _session(voice_mode=VoiceButtonMode.SECONDARY)

    state = session.voice_button(FC)
    assert state.enabled is True
    assert state.on_primary is False

    nm = session.field_context("en_US", private_ime_options="nm")
    assert session.voice_button(nm).enabled is False

    unavailable = _session(recognizer=FakeRecognizer(available=False))
    assert unavailable.voice_button(FC).enabled is False

    off = _session(voice_mode=VoiceButtonMode.OFF)
    assert off.voice_button(FC).enabled is False


def test_unavailable_recognizer_refuses_start(log_lines):
    recognizer = FakeRecognizer(available=False)
    session = _session(recognizer=recognizer)

    assert session.start(FC, GRANTED) is None
    assert session.state is SessionState.IDLE
    assert recognizer.begun == []
    ignored = [l for l in log_lines if l.get("decision") == "ignore"]
    assert ignored[-1]["details"]["reason"] == "recognizer_unavailable"

    recognizer.available = True

    assert session.start(FC, GRANTED) is Action.BEGIN_RECOGNITION
    assert session.state is SessionState.LISTENING


class ImmediateRecognizer(FakeRecognizer):
    """Delivers its result from inside begin()."""

    def __init__(self):
        super().__init__()
        self.session = None

    def begin(self, field_context, run_id):
        super().begin(field_context, run_id)
        self.session.on_recognition_result(["hello"], run_id=run_id)


def test_result_delivered_during_begin_stops_latency_timer(log_lines):
    recognizer = ImmediateRecognizer()
    session = _session(recognizer=recognizer)
    recognizer.session = session

    assert session.start(FC, GRANTED) is Action.BEGIN_RECOGNITION

    assert session.state is SessionState.HIGHLIGHTED
    assert session.runtime._timers == {}  # pylint: disable=protected-access
    metric_lines = [l for l in log_lines if l.get("event_type") == "METRIC_TIMER"]
    assert len(metric_lines) == 1
    assert metric_lines[0]["details"]["outcome"] == "delivered"


def test_close_drops_open_latency_timer(log_lines):
    session = _session()
    session.start(FC, GRANTED)

    session.close()
    session.on_recognition_result(["hello"], run_id=1)

    assert session.state is SessionState.HIGHLIGHTED
    assert not [l for l in log_lines if l.get("event_type") == "METRIC_TIMER"]
