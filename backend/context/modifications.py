"""
Modification accounting for voice-sourced text.

Counts how much the user had to fix after a transcription was inserted:
characters typed, separators typed and characters deleted. The counters
feed external quality telemetry only.

Rules:
- Counters start at zero for every session
- flush() returns the accumulated snapshot and resets to zero
- A delete at cursor position 0 deletes nothing and is not counted
- A delete with a selection counts the selection length, not 1

Every typed input counts as length 1, so compound inputs (emoji) are
undercounted. Historical baselines depend on this.
"""

from __future__ import annotations

from dataclasses import dataclass

from constants import TYPED_INPUT_LENGTH


@dataclass(frozen=True)
class ModificationCounters:
    """Immutable snapshot of the modification counters."""

    inserted_chars: int = 0
    inserted_punctuation: int = 0
    deleted_chars: int = 0

    def is_empty(self) -> bool:
        return not (self.inserted_chars or self.inserted_punctuation or self.deleted_chars)

    def as_dict(self) -> dict[str, int]:
        return {
            "inserted_chars": self.inserted_chars,
            "inserted_punctuation": self.inserted_punctuation,
            "deleted_chars": self.deleted_chars,
        }


class ModificationAccounting:
    """
    Mutable counters plus the cursor/selection they are evaluated against.

    The owner decides *whether* an edit is counted (only after voice
    input); this class decides *how much* it counts.
    """

    def __init__(self) -> None:
        self._inserted_chars = 0
        self._inserted_punctuation = 0
        self._deleted_chars = 0
        # None until the host reports a selection
        self._cursor_pos: int | None = None
        self._selection_span = 0

    # ------------------------------------------------------------------
    # Cursor tracking
    # ------------------------------------------------------------------

    def set_cursor(self, cursor_pos: int, selection_span: int = 0) -> None:
        self._cursor_pos = cursor_pos
        self._selection_span = max(selection_span, 0)

    @property
    def cursor_pos(self) -> int | None:
        return self._cursor_pos

    @property
    def selection_span(self) -> int:
        return self._selection_span

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_insert(self, n: int = TYPED_INPUT_LENGTH) -> None:
        self._inserted_chars += n

    def record_insert_punctuation(self, n: int = TYPED_INPUT_LENGTH) -> None:
        self._inserted_punctuation += n

    def record_delete(
        self,
        n: int = TYPED_INPUT_LENGTH,
        *,
        cursor_pos: int | None = None,
        selection_length: int | None = None,
    ) -> int:
        """
        Record a deletion and return the amount counted.

        cursor_pos and selection_length default to the tracked cursor.
        An unknown cursor position is treated as inside the text.
        """
        if cursor_pos is None:
            cursor_pos = self._cursor_pos
        if selection_length is None:
            selection_length = self._selection_span

        if cursor_pos is not None and cursor_pos <= 0:
            return 0

        counted = selection_length if selection_length > 0 else n
        self._deleted_chars += counted
        return counted

    def record_deleted_text(self, length: int) -> None:
        """Count a whole block of text removed at once (a revert)."""
        self._deleted_chars += length

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def peek(self) -> ModificationCounters:
        return ModificationCounters(
            inserted_chars=self._inserted_chars,
            inserted_punctuation=self._inserted_punctuation,
            deleted_chars=self._deleted_chars,
        )

    def flush(self) -> ModificationCounters:
        """Return the accumulated counters and reset them to zero."""
        snapshot = self.peek()
        self.reset()
        return snapshot

    def reset(self) -> None:
        self._inserted_chars = 0
        self._inserted_punctuation = 0
        self._deleted_chars = 0
