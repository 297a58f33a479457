from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx

from playlist_relay.api.handlers.deps import ApiDeps
from playlist_relay.clients.github import GitHubContentClient
from playlist_relay.clients.relay import HttpMediaClient, HttpRelayClient
from playlist_relay.clients.telegram import HttpTelegramClient
from playlist_relay.domain.contracts import ContentClient, MediaClient, RelayClient, TelegramClient
from playlist_relay.domain.log_buffer import LogBuffer
from playlist_relay.domain.pending_queue import PendingTransferQueue
from playlist_relay.domain.progress import UploadProgress
from playlist_relay.domain.use_cases.transfer import TransferWorker
from playlist_relay.settings import RelaySettings


@dataclass
class RuntimeContainer:
    settings: RelaySettings
    telegram: TelegramClient
    content: ContentClient
    transfer: TransferWorker | None
    queue: PendingTransferQueue
    logs: LogBuffer
    progress: UploadProgress
    api_deps: ApiDeps
    on_startup: Callable[[], Awaitable[None]] | None
    on_shutdown: Callable[[], Awaitable[None]] | None


def build_runtime_container(
    settings: RelaySettings,
    *,
    telegram: TelegramClient | None = None,
    content: ContentClient | None = None,
    media: MediaClient | None = None,
    relay: RelayClient | None = None,
) -> RuntimeContainer:
    """Wire process-lifetime state and clients.

    Clients passed in replace the HTTP ones; everything not passed shares one
    httpx.AsyncClient that is closed on shutdown.
    """
    http: httpx.AsyncClient | None = None

    def _http() -> httpx.AsyncClient:
        nonlocal http
        if http is None:
            http = httpx.AsyncClient(headers={"User-Agent": "playlist-relay"})
        return http

    if telegram is None:
        telegram = HttpTelegramClient(
            http=_http(),
            bot_token=settings.bot_token,
            api_timeout=settings.api_timeout_seconds,
            file_timeout=settings.transfer_timeout_seconds,
        )
    if content is None:
        content = GitHubContentClient(
            http=_http(),
            token=settings.github_token,
            repo=settings.github_repo,
            branch=settings.github_branch,
            timeout=settings.api_timeout_seconds,
        )

    progress = UploadProgress()
    transfer: TransferWorker | None = None
    if relay is None and settings.upload_url:
        relay = HttpRelayClient(
            http=_http(),
            url=settings.upload_url,
            key=settings.upload_key,
            timeout=settings.transfer_timeout_seconds,
        )
    if relay is not None:
        if media is None:
            media = HttpMediaClient(http=_http(), timeout=settings.transfer_timeout_seconds)
        transfer = TransferWorker(media=media, relay=relay, progress=progress)

    queue = PendingTransferQueue()
    logs = LogBuffer(capacity=settings.log_buffer_capacity)
    api_deps = ApiDeps(
        settings=settings,
        telegram=telegram,
        content=content,
        transfer=transfer,
        queue=queue,
        logs=logs,
        progress=progress,
    )

    on_startup: Callable[[], Awaitable[None]] | None = None
    if settings.verify_credentials_on_startup:
        verified_content = content

        async def _verify_credentials() -> None:
            await verified_content.verify_access()

        on_startup = _verify_credentials

    on_shutdown: Callable[[], Awaitable[None]] | None = None
    if http is not None:
        shared_http = http

        async def _close_http() -> None:
            await shared_http.aclose()

        on_shutdown = _close_http

    return RuntimeContainer(
        settings=settings,
        telegram=telegram,
        content=content,
        transfer=transfer,
        queue=queue,
        logs=logs,
        progress=progress,
        api_deps=api_deps,
        on_startup=on_startup,
        on_shutdown=on_shutdown,
    )
