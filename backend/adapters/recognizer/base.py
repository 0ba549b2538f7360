"""
Recognizer adapter contract.

This module defines the *interface only*: no audio capture, no endpointing,
no orchestration decisions live here.

Key invariants:
- Run IDs are owned by the session. Adapters never generate or mutate them.
- The adapter reports results and cancellations by calling back into the
  session (directly on the event thread, or through session.pump.EventPump
  from any other thread). It never calls the reducer itself.
- Cancellation is explicit: cancel(run_id) is a request to stop producing
  output for that run as quickly as possible.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from context.field import FieldContext


class RecognizerAdapter(ABC):
    """
    Abstract interface for a speech recognizer.

    Implementations are responsible for:
    - Starting to listen for a specific run_id via begin()
    - Eventually delivering either results or a cancellation for that run_id
    - Supporting cancellation via cancel()

    Non-responsibilities:
    - No state machine logic (IDLE/LISTENING/etc.)
    - No consent handling
    - No timeouts owned by the session
    """

    @abstractmethod
    def begin(self, field_context: FieldContext, run_id: int) -> None:
        """
        Start listening for the given run_id.

        Must return immediately; results arrive asynchronously.
        """
        raise NotImplementedError

    @abstractmethod
    def cancel(self, run_id: int) -> None:
        """
        Request cancellation of the specified run.

        Contract:
        - After cancellation, the adapter must not deliver results for that
          run_id. Late deliveries are ignored by the session anyway.
        - cancel() MUST be idempotent.
        - Unknown or finished run_ids are a no-op.
        """
        raise NotImplementedError

    def is_available(self) -> bool:
        """Whether recognition can run at all on this device."""
        return True
