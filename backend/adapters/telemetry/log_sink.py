"""
Telemetry collaborator that writes voice input events to the JSONL log.

Every named event becomes one VOICE_TELEMETRY line; modification counters
are emitted as a METRIC_COUNTERS metric.
"""

from __future__ import annotations

import time
from typing import Any

from constants import METRIC_TEXT_MODIFICATIONS
from context.modifications import ModificationCounters
from observability import metrics
from observability.logger import log_event


class LogTelemetrySink:
    def __init__(self, session_id: str | None = None) -> None:
        self.session_id = session_id

    def record(self, name: str, details: dict[str, Any]) -> None:
        log_event({
            "ts_ms": int(time.time() * 1000),
            "event_type": "VOICE_TELEMETRY",
            "name": name,
            "session_id": self.session_id,
            "details": dict(details),
        })

    def record_modifications(self, counters: ModificationCounters) -> None:
        metrics.record_counters(
            METRIC_TEXT_MODIFICATIONS,
            counters.as_dict(),
            session_id=self.session_id,
        )
