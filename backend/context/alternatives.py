"""
Per-word alternatives cache.

Responsibilities:
- Hold, for each recognized (or already substituted) word, its ranked list
  of alternative transcriptions
- Case-insensitive fallback lookup
- Case adaptation of suggestions to the word being replaced
- Rename an entry when the user swaps a word for one of its alternatives

Non-responsibilities:
- No reducer logic
- No UI
- No decision about *when* to ingest or substitute

All operations are total: absence is None or a no-op, never an exception.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from observability.logger import log_event


def _capitalize_first(text: str) -> str:
    if not text:
        return text
    return text[0].upper() + text[1:]


def adapt_case(suggestions: Sequence[str], exemplar_is_upper: bool) -> list[str]:
    """
    Return suggestions matching the case style of the exemplar word.

    If the exemplar starts with an uppercase letter, every suggestion's
    first character is upper-cased; otherwise suggestions pass through.
    Always returns a fresh list.
    """
    if not exemplar_is_upper:
        return list(suggestions)
    return [_capitalize_first(s) for s in suggestions]


class AlternativesCache:
    """
    Mutable word -> alternatives mapping owned by a voice session.

    Invariants:
    - Keys are unique; a word maps to at most one list at a time
    - Lists are never shared with callers (copies in, copies out)
    """

    def __init__(self, session_id: str | None = None) -> None:
        self._session_id = session_id
        self._entries: dict[str, list[str]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    adapt_case = staticmethod(adapt_case)

    def ingest(self, alternatives: Mapping[str, Iterable[str]]) -> None:
        """Merge recognizer alternatives. Last writer wins on key collision."""
        for word, candidates in alternatives.items():
            self._entries[word] = list(candidates)

        if alternatives:
            log_event({
                "event_type": "alternatives_ingested",
                "session_id": self._session_id,
                "words": len(alternatives),
                "cache_size": len(self._entries),
            })

    def lookup(self, word: str) -> list[str] | None:
        """Case-sensitive lookup, then lower-cased retry."""
        key = self._resolve_key(word)
        if key is None:
            return None
        return list(self._entries[key])

    def substitute(self, old_word: str, chosen: str) -> None:
        """
        Rename the entry of old_word to chosen after the user swapped them.

        The chosen word (exact match only) leaves the list and the replaced
        word joins it, so the original transcription is offered back later.
        No-op if old_word has no cached alternatives.
        """
        key = self._resolve_key(old_word)
        if key is None:
            return

        suggestions = [s for s in self._entries.pop(key) if s != chosen]
        suggestions.append(key)
        self._entries[chosen] = suggestions

        log_event({
            "event_type": "alternatives_substituted",
            "session_id": self._session_id,
            "old_word": key,
            "chosen": chosen,
            "alternatives": len(suggestions),
        })

    def clear(self) -> None:
        self._entries.clear()

    def snapshot(self) -> dict[str, list[str]]:
        return {word: list(alts) for word, alts in self._entries.items()}

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and self._resolve_key(word) is not None

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _resolve_key(self, word: str) -> str | None:
        if word in self._entries:
            return word
        lowered = word.lower()
        if lowered in self._entries:
            return lowered
        return None
