from __future__ import annotations

import logging

from playlist_relay.domain.contracts import ContentClient, TelegramClient
from playlist_relay.domain.errors import UnsupportedFileError
from playlist_relay.domain.messages import unsupported_file_text
from playlist_relay.domain.models import PublishResult

logger = logging.getLogger("relay.publish")


def ensure_playlist_file_name(file_name: str | None, *, extension: str) -> str:
    if not file_name or not file_name.lower().endswith(extension.lower()):
        raise UnsupportedFileError(unsupported_file_text(extension))
    return file_name


async def publish_playlist(
    *,
    telegram: TelegramClient,
    content: ContentClient,
    file_id: str,
    file_name: str | None,
    extension: str,
    target_path: str,
) -> PublishResult:
    """Copy a Telegram document to the repository path.

    The current sha is read right before the write so the contents API can
    reject the PUT if the file changed in between.
    """
    ensure_playlist_file_name(file_name, extension=extension)

    file_path = await telegram.get_file_path(file_id=file_id)
    payload = await telegram.download_file(file_path=file_path)
    sha = await content.get_sha(path=target_path)
    await content.put_file(
        path=target_path,
        payload=payload,
        message=f"Update {target_path} via Telegram bot",
        sha=sha,
    )
    logger.info(
        "playlist published",
        extra={"path": target_path, "bytes": len(payload), "new_file": str(sha is None).lower()},
    )
    return PublishResult(
        path=target_path,
        public_url=content.public_url(path=target_path),
        created=sha is None,
    )
