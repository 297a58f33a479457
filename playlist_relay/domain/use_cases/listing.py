from __future__ import annotations

from dataclasses import dataclass

from playlist_relay.domain.contracts import ContentClient
from playlist_relay.domain.models import PendingBatch, RequesterId
from playlist_relay.domain.pending_queue import PendingTransferQueue
from playlist_relay.domain.playlist import extract_media_links


@dataclass(frozen=True)
class ListingResult:
    playlist_found: bool
    batch: PendingBatch | None = None


async def prepare_listing(
    *,
    content: ContentClient,
    queue: PendingTransferQueue,
    requester: RequesterId,
    playlist_path: str,
    media_markers: tuple[str, ...],
    trusted_hosts: tuple[str, ...],
) -> ListingResult:
    """Read the published playlist and park its media links for confirmation."""
    payload = await content.read_file(path=playlist_path)
    if payload is None:
        queue.take(requester)
        return ListingResult(playlist_found=False)

    links = extract_media_links(
        payload.decode("utf-8-sig", errors="replace"),
        media_markers=media_markers,
        trusted_hosts=trusted_hosts,
    )
    if not links:
        # A stale batch must not survive a listing that found nothing.
        queue.take(requester)
        return ListingResult(playlist_found=True)

    return ListingResult(playlist_found=True, batch=queue.put(requester, links))
