from __future__ import annotations

from typing import Protocol, runtime_checkable

# Affirmative token for the confirm step; compared case-insensitively.
CONFIRMATION_TOKEN = "yes"


@runtime_checkable
class TelegramClient(Protocol):
    """Bot API calls consumed by the dispatcher and notifier."""

    async def get_file_path(self, *, file_id: str) -> str: ...

    async def download_file(self, *, file_path: str) -> bytes: ...

    async def send_message(
        self,
        *,
        chat_id: int | str,
        text: str,
        reply_markup: dict[str, object] | None = None,
    ) -> None: ...

    async def answer_callback_query(self, *, callback_query_id: str, text: str | None = None) -> None: ...

    async def get_webhook_info(self) -> dict[str, object]: ...


@runtime_checkable
class ContentClient(Protocol):
    """Repository contents API with sha-based optimistic overwrite.

    401/403 must surface as ContentAuthenticationError, 404 as "absent".
    """

    async def get_sha(self, *, path: str) -> str | None: ...

    async def read_file(self, *, path: str) -> bytes | None: ...

    async def put_file(self, *, path: str, payload: bytes, message: str, sha: str | None) -> str: ...

    async def verify_access(self) -> None: ...

    def public_url(self, *, path: str) -> str: ...


@runtime_checkable
class MediaClient(Protocol):
    async def download(self, *, url: str) -> bytes: ...


@runtime_checkable
class RelayClient(Protocol):
    async def upload(self, *, name: str, payload: bytes) -> None: ...
