"""In-process metrics for batch submissions."""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass


@dataclass
class OutputMetrics:
    """Counters for the output's write path."""

    batches_written: int = 0 # Requests accepted by the API
    entries_written: int = 0 # Entries inside accepted requests
    batches_failed: int = 0 # Requests that raised
    entries_failed: int = 0 # Entries inside failed requests
    last_write_duration_ms: float = 0.0

    def as_dict(self) -> dict[str, object]:
        """Return the metrics as a dictionary."""

        return asdict(self)


_LOCK = threading.RLock()
_METRICS = OutputMetrics()


def record_write(entries: int, duration_ms: float) -> None:
    """Record a successful batch write."""

    with _LOCK:
        _METRICS.batches_written += 1
        _METRICS.entries_written += entries
        _METRICS.last_write_duration_ms = duration_ms


def record_failure(entries: int) -> None:
    """Record a batch that could not be written."""

    with _LOCK:
        _METRICS.batches_failed += 1
        _METRICS.entries_failed += entries


def reset_metrics() -> None:
    with _LOCK:
        global _METRICS
        _METRICS = OutputMetrics()


def get_metrics() -> OutputMetrics:
    """Get a snapshot of the metrics."""

    with _LOCK:
        return OutputMetrics(**_METRICS.as_dict())
