"""In-process resolution counters per collection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock

logger = logging.getLogger(__name__)

OUTCOMES = ("found", "missing", "unconnected_edge", "skeletal_precreate")


@dataclass
class ResolutionSummary:
    """Aggregated resolution outcomes for one collection."""

    found: int = 0
    missing: int = 0
    unconnected_edge: int = 0
    skeletal_precreate: int = 0


class _ResolutionRecorder:
    def __init__(self) -> None:
        self._lock = Lock()
        self._stats: dict[str, ResolutionSummary] = {}

    def record(self, *, collection: str, outcome: str) -> None:
        if outcome not in OUTCOMES:
            msg = f"Invalid outcome: {outcome!r}"
            raise ValueError(msg)
        with self._lock:
            summary = self._stats.setdefault(collection, ResolutionSummary())
            setattr(summary, outcome, getattr(summary, outcome) + 1)

        logger.debug("resolution collection=%s outcome=%s", collection, outcome)

    def snapshot(self) -> dict[str, dict[str, int]]:
        with self._lock:
            return {
                collection: {outcome: getattr(summary, outcome) for outcome in OUTCOMES}
                for collection, summary in sorted(self._stats.items())
            }

    def reset(self) -> None:
        with self._lock:
            self._stats.clear()


_RECORDER = _ResolutionRecorder()


def record_resolution(*, collection: str, outcome: str) -> None:
    """Record one resolution outcome for *collection*."""
    _RECORDER.record(collection=collection, outcome=outcome)


def resolution_metrics_snapshot() -> dict[str, dict[str, int]]:
    """Return current in-process resolution counters."""
    return _RECORDER.snapshot()


def reset_resolution_metrics() -> None:
    """Clear all resolution counters (test helper)."""
    _RECORDER.reset()
