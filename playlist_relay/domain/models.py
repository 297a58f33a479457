from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from playlist_relay.domain.playlist import display_name_from_url

# Telegram user ids arrive as integers but are compared as strings.
RequesterId = str


@dataclass(frozen=True)
class TransferItem:
    url: str
    name: str

    @classmethod
    def from_url(cls, url: str) -> TransferItem:
        return cls(url=url, name=display_name_from_url(url))


@dataclass(frozen=True)
class PendingBatch:
    batch_id: str
    requester: RequesterId
    urls: tuple[str, ...]

    def items(self) -> list[TransferItem]:
        return [TransferItem.from_url(url) for url in self.urls]


@dataclass(frozen=True)
class TransferOutcome:
    item: TransferItem
    success: bool
    reason: str | None = None

    @classmethod
    def ok(cls, item: TransferItem) -> TransferOutcome:
        return cls(item=item, success=True)

    @classmethod
    def failed(cls, item: TransferItem, reason: str) -> TransferOutcome:
        return cls(item=item, success=False, reason=reason)


@dataclass(frozen=True)
class BatchSummary:
    batch_id: str
    outcomes: tuple[TransferOutcome, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)


@dataclass(frozen=True)
class LogEntry:
    seq: int
    timestamp: datetime
    severity: str
    message: str
    raw: object | None = None


@dataclass(frozen=True)
class PublishResult:
    path: str
    public_url: str
    created: bool
