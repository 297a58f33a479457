from __future__ import annotations

import time

from playlist_relay.api.handlers.deps import ApiDeps
from playlist_relay.api.schemas import LogEntryResponse, StatusResponse, UploadProgressResponse

COMPONENT_ID = "api.status"
DEFAULT_LOG_LIMIT = 20


async def get_status_handler(
    deps: ApiDeps,
    *,
    version: str,
    run_id: str,
    started_monotonic: float,
) -> StatusResponse:
    return StatusResponse(
        active=True,
        version=version,
        run_id=run_id,
        uptime_seconds=int(time.monotonic() - started_monotonic),
        pending_batches=len(deps.queue),
        transfer_active=deps.progress.snapshot().active,
        relay_enabled=deps.settings.relay_enabled,
    )


async def list_logs_handler(deps: ApiDeps, *, limit: int = DEFAULT_LOG_LIMIT) -> list[LogEntryResponse]:
    """Most recent entries, oldest first."""
    return [
        LogEntryResponse(
            seq=entry.seq,
            timestamp=entry.timestamp,
            severity=entry.severity,
            message=entry.message,
            raw=entry.raw,
        )
        for entry in deps.logs.recent(limit)
    ]


async def get_upload_progress_handler(deps: ApiDeps) -> UploadProgressResponse:
    snapshot = deps.progress.snapshot()
    return UploadProgressResponse(
        active=snapshot.active,
        batch_id=snapshot.batch_id,
        total=snapshot.total,
        completed=snapshot.completed,
        succeeded=snapshot.succeeded,
        failed=snapshot.failed,
        current_item=snapshot.current_item,
        started_at=snapshot.started_at,
        finished_at=snapshot.finished_at,
    )
