"""
Event pump: single-consumer handoff into a voice session.

The recognizer (and any other asynchronous collaborator) may call back from
an arbitrary thread. The pump turns those callbacks into events on an
asyncio queue drained by exactly one consumer task, so the session is only
ever touched from the loop's thread.

Invariants:
- FIFO: events are dispatched in the order they were posted
- Single writer: only run() calls into the session
- post() is safe from any thread once run() has started
"""

from __future__ import annotations

import asyncio
import time
from typing import Mapping, Sequence

from observability.logger import log_event
from orchestrator.events import (
    Event,
    EventType,
    RecognitionCancelled,
    RecognitionResults,
    ResultsApplied,
)
from orchestrator.state_dataclass import RecognitionResult
from session.voice_session import VoiceSession


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class EventPump:
    """Asyncio queue feeding one VoiceSession."""

    def __init__(self, session: VoiceSession) -> None:
        self._session = session
        self._queue: asyncio.Queue[Event | None] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self.dispatched = 0

    # -------------------------
    # Producer side
    # -------------------------

    def post(self, event: Event | None) -> None:
        """
        Enqueue an event for dispatch. None stops the consumer.

        From the loop's own thread (or before run() started) the event is
        queued directly; from any other thread it is handed over with
        call_soon_threadsafe.
        """
        loop = self._loop
        if loop is None or self._on_loop_thread(loop):
            self._queue.put_nowait(event)
            return
        loop.call_soon_threadsafe(self._queue.put_nowait, event)

    def post_results(
        self,
        candidates: Sequence[str],
        alternatives: Mapping[str, Sequence[str]] | None = None,
        capitalize_first_word: bool = False,
        run_id: int | None = None,
    ) -> None:
        """Recognizer callback: deliver results, then apply them."""
        self.post(RecognitionResults(
            event_type=EventType.RECOGNITION_RESULTS,
            ts_ms=_now_ms(),
            result=RecognitionResult.of(candidates, alternatives),
            run_id=run_id,
        ))
        self.post(ResultsApplied(
            event_type=EventType.RESULTS_APPLIED,
            ts_ms=_now_ms(),
            capitalize_first_word=capitalize_first_word,
        ))

    def post_cancel(self, reason: str = "cancelled", run_id: int | None = None) -> None:
        """Recognizer callback: the run ended without results."""
        self.post(RecognitionCancelled(
            event_type=EventType.RECOGNITION_CANCELLED,
            ts_ms=_now_ms(),
            reason=reason,
            run_id=run_id,
        ))

    def stop(self) -> None:
        self.post(None)

    # -------------------------
    # Consumer side
    # -------------------------

    async def run(self) -> None:
        """Dispatch queued events until stop() is posted, then close the session."""
        self._loop = asyncio.get_running_loop()
        while True:
            event = await self._queue.get()
            if event is None:
                break
            self._session.dispatch(event)
            self.dispatched += 1

        self._session.close()
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "EVENT_PUMP_STOPPED",
            "session_id": self._session.session_id,
            "dispatched": self.dispatched,
        })

    @staticmethod
    def _on_loop_thread(loop: asyncio.AbstractEventLoop) -> bool:
        try:
            return asyncio.get_running_loop() is loop
        except RuntimeError:
            return False
