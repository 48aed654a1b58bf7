"""
diagnostics.py — Structured record of data the catalog chose to skip.

Invalid season/episode numbers, unnamed series, orphaned records and scan
errors never interrupt a refresh.  Each one is reported here as an event so
it can be inspected (and asserted on) instead of only appearing in the log.
"""

import logging
import threading
from dataclasses import dataclass, field

log = logging.getLogger("catalog")

INVALID_SEASON = "invalid_season"
INVALID_EPISODE = "invalid_episode"
UNPARSABLE_EPISODE = "unparsable_episode"
UNNAMED_SERIES = "unnamed_series"
ORPHAN_NODE = "orphan_node"
DUPLICATE_NODE = "duplicate_node"
SCAN_ERROR = "scan_error"


@dataclass(frozen=True)
class DiagnosticEvent:
    kind: str
    source: str  # "local" | "remote"
    message: str
    context: dict = field(default_factory=dict)


class Diagnostics:
    """Append-only event channel shared by the tree providers."""

    def __init__(self):
        self._events: list[DiagnosticEvent] = []
        self._lock = threading.Lock()

    def report(self, kind: str, source: str, message: str, **context) -> DiagnosticEvent:
        """Record an event. Identical events are kept once until clear()."""
        event = DiagnosticEvent(kind=kind, source=source, message=message, context=context)
        with self._lock:
            if event in self._events:
                return event
            self._events.append(event)
        log.warning(f"  [{source}] {message}")
        return event

    def events(self, kind: str | None = None) -> list[DiagnosticEvent]:
        with self._lock:
            if kind is None:
                return list(self._events)
            return [e for e in self._events if e.kind == kind]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
