from __future__ import annotations

import itertools
import threading
from collections import deque
from datetime import UTC, datetime

from playlist_relay.domain.models import LogEntry

DEFAULT_CAPACITY = 200


class LogBuffer:
    """Numbered fixed-capacity ring of recent log entries."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("log buffer capacity must be positive")
        self.capacity = capacity
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._seq = itertools.count(1)
        self._lock = threading.Lock()

    def append(
        self,
        *,
        severity: str,
        message: str,
        raw: object | None = None,
        timestamp: datetime | None = None,
    ) -> LogEntry:
        with self._lock:
            entry = LogEntry(
                seq=next(self._seq),
                timestamp=timestamp or datetime.now(UTC),
                severity=severity,
                message=message,
                raw=raw,
            )
            self._entries.append(entry)
        return entry

    def recent(self, limit: int | None = None) -> list[LogEntry]:
        with self._lock:
            entries = list(self._entries)
        if limit is None:
            return entries
        if limit <= 0:
            return []
        return entries[-limit:]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
