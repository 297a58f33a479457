from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime


@dataclass(frozen=True)
class ProgressSnapshot:
    active: bool = False
    batch_id: str | None = None
    requester: str | None = None
    total: int = 0
    completed: int = 0
    succeeded: int = 0
    failed: int = 0
    current_item: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None


class UploadProgress:
    """Progress of the most recently started transfer batch."""

    def __init__(self) -> None:
        self._snapshot = ProgressSnapshot()

    def snapshot(self) -> ProgressSnapshot:
        return self._snapshot

    def start(self, *, batch_id: str, requester: str, total: int) -> None:
        self._snapshot = ProgressSnapshot(
            active=True,
            batch_id=batch_id,
            requester=requester,
            total=total,
            started_at=datetime.now(UTC),
        )

    def begin_item(self, name: str) -> None:
        self._snapshot = replace(self._snapshot, current_item=name)

    def finish_item(self, *, success: bool) -> None:
        current = self._snapshot
        self._snapshot = replace(
            current,
            completed=current.completed + 1,
            succeeded=current.succeeded + (1 if success else 0),
            failed=current.failed + (0 if success else 1),
        )

    def finish(self) -> None:
        self._snapshot = replace(
            self._snapshot,
            active=False,
            current_item=None,
            finished_at=datetime.now(UTC),
        )
