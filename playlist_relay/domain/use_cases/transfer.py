from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from playlist_relay.domain.contracts import MediaClient, RelayClient
from playlist_relay.domain.errors import UpstreamError
from playlist_relay.domain.messages import outcome_text, summary_text
from playlist_relay.domain.models import BatchSummary, TransferItem, TransferOutcome
from playlist_relay.domain.progress import UploadProgress

NotifySink = Callable[[str], Awaitable[object]]
logger = logging.getLogger("relay.transfer")


@dataclass
class TransferWorker:
    """Downloads each item and re-uploads it to the relay endpoint.

    Items run strictly one after another; every network call and the
    per-item notification complete before the next item starts, so progress
    messages reach the requester in batch order. A failed item is recorded and
    the loop moves on. Nothing is retried.
    """

    media: MediaClient
    relay: RelayClient
    progress: UploadProgress

    async def run(
        self,
        *,
        batch_id: str,
        requester: str,
        items: Sequence[TransferItem],
        notify: NotifySink,
    ) -> BatchSummary:
        if not items:
            raise ValueError("transfer batch must not be empty")

        outcomes: list[TransferOutcome] = []
        self.progress.start(batch_id=batch_id, requester=requester, total=len(items))
        logger.info(
            "transfer batch started",
            extra={"batch_id": batch_id, "requester": requester, "total": len(items)},
        )
        try:
            for item in items:
                self.progress.begin_item(item.name)
                outcome = await self._transfer_one(item)
                outcomes.append(outcome)
                self.progress.finish_item(success=outcome.success)
                self._log_outcome(batch_id=batch_id, outcome=outcome)
                await notify(outcome_text(outcome))
        finally:
            self.progress.finish()

        summary = BatchSummary(batch_id=batch_id, outcomes=tuple(outcomes))
        logger.info(
            "transfer batch finished",
            extra={
                "batch_id": batch_id,
                "requester": requester,
                "succeeded": summary.succeeded,
                "failed": summary.failed,
            },
        )
        await notify(summary_text(summary))
        return summary

    async def _transfer_one(self, item: TransferItem) -> TransferOutcome:
        try:
            payload = await self.media.download(url=item.url)
        except Exception as exc:
            return self._failed(item, "download", exc)

        try:
            await self.relay.upload(name=item.name, payload=payload)
        except Exception as exc:
            return self._failed(item, "upload", exc)

        return TransferOutcome.ok(item)

    @staticmethod
    def _failed(item: TransferItem, step: str, exc: Exception) -> TransferOutcome:
        if not isinstance(exc, UpstreamError):
            # The batch continues past unexpected errors too.
            logger.exception("transfer item crashed", extra={"item": item.name, "url": item.url})
        return TransferOutcome.failed(item, f"{step}: {_reason(exc)}")

    @staticmethod
    def _log_outcome(*, batch_id: str, outcome: TransferOutcome) -> None:
        extra = {"batch_id": batch_id, "item": outcome.item.name, "url": outcome.item.url}
        if outcome.success:
            logger.info("transfer item uploaded", extra=extra)
        else:
            logger.warning("transfer item failed", extra={**extra, "error": outcome.reason})


def _reason(exc: Exception) -> str:
    if not isinstance(exc, UpstreamError):
        return type(exc).__name__
    message = exc.args[0] if exc.args else "failed"
    if exc.status_code is None:
        return str(message)
    return f"{exc.status_code} {message}"
