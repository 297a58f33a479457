from __future__ import annotations

from dataclasses import dataclass

from playlist_relay.domain.contracts import ContentClient, TelegramClient
from playlist_relay.domain.log_buffer import LogBuffer
from playlist_relay.domain.pending_queue import PendingTransferQueue
from playlist_relay.domain.progress import UploadProgress
from playlist_relay.domain.use_cases.transfer import TransferWorker
from playlist_relay.settings import RelaySettings


@dataclass(frozen=True)
class ApiDeps:
    settings: RelaySettings
    telegram: TelegramClient
    content: ContentClient
    transfer: TransferWorker | None
    queue: PendingTransferQueue
    logs: LogBuffer
    progress: UploadProgress
