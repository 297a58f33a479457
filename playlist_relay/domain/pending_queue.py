from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field

from playlist_relay.domain.ids import new_batch_id
from playlist_relay.domain.models import PendingBatch, RequesterId


@dataclass
class PendingTransferQueue:
    """Latest unconfirmed batch per requester.

    Process-local only. Under a stateless-per-request host every invocation
    starts with an empty queue, so a confirmation landing on another instance
    is reported as "nothing queued".
    """

    _batches: dict[RequesterId, PendingBatch] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def put(self, requester: RequesterId, urls: Sequence[str]) -> PendingBatch:
        batch = PendingBatch(batch_id=new_batch_id(), requester=requester, urls=tuple(urls))
        with self._lock:
            self._batches[requester] = batch
        return batch

    def take(self, requester: RequesterId) -> PendingBatch | None:
        with self._lock:
            return self._batches.pop(requester, None)

    def peek(self, requester: RequesterId) -> PendingBatch | None:
        with self._lock:
            return self._batches.get(requester)

    def clear(self) -> None:
        with self._lock:
            self._batches.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._batches)
