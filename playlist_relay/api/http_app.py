from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.responses import PlainTextResponse

from playlist_relay.api.handlers.deps import ApiDeps
from playlist_relay.api.handlers.diagnostics import check_env_handler, check_webhook_handler
from playlist_relay.api.handlers.status import (
    DEFAULT_LOG_LIMIT,
    get_status_handler,
    get_upload_progress_handler,
    list_logs_handler,
)
from playlist_relay.api.handlers.telegram_webhook import telegram_webhook_handler
from playlist_relay.api.schemas import (
    EnvCheckResponse,
    HealthResponse,
    LogEntryResponse,
    StatusResponse,
    UploadProgressResponse,
    WebhookCheckResponse,
    WebhookResponse,
)
from playlist_relay.logging_setup import attach_log_buffer, detach_log_buffer

APP_VERSION = "0.1.0"
WEBHOOK_PATHS = ("/webhook", "/api/bot")
_NON_POST_METHODS = ["GET", "PUT", "PATCH", "DELETE"]


def build_app(
    *,
    api_deps: ApiDeps,
    run_id: str,
    on_startup: Callable[[], Awaitable[None]] | None = None,
    on_shutdown: Callable[[], Awaitable[None]] | None = None,
) -> FastAPI:
    logger = logging.getLogger("relay.runtime")
    started_monotonic = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        del app
        buffer_handler = attach_log_buffer(api_deps.logs)
        try:
            logger.info("relay started", extra={"run_id": run_id})
            # A rejected credential check aborts startup here.
            if on_startup is not None:
                await on_startup()

            yield

            logger.info(
                "relay stopping",
                extra={"run_id": run_id, "pending_batches": len(api_deps.queue)},
            )
        finally:
            if on_shutdown is not None:
                await on_shutdown()
            detach_log_buffer(buffer_handler)

    app = FastAPI(title="playlist-relay", version=APP_VERSION, lifespan=lifespan)

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/status", response_model=StatusResponse, tags=["System"])
    async def status() -> StatusResponse:
        return await get_status_handler(
            api_deps,
            version=APP_VERSION,
            run_id=run_id,
            started_monotonic=started_monotonic,
        )

    @app.get("/logs", response_model=list[LogEntryResponse], tags=["System"])
    async def logs(limit: int = Query(default=DEFAULT_LOG_LIMIT, ge=1, le=1000)) -> list[LogEntryResponse]:
        return await list_logs_handler(api_deps, limit=limit)

    @app.get("/upload-progress", response_model=UploadProgressResponse, tags=["Transfers"])
    async def upload_progress() -> UploadProgressResponse:
        return await get_upload_progress_handler(api_deps)

    @app.get("/diagnostics/env", response_model=EnvCheckResponse, tags=["Diagnostics"])
    async def diagnostics_env() -> EnvCheckResponse:
        return await check_env_handler()

    @app.get("/diagnostics/webhook", response_model=WebhookCheckResponse, tags=["Diagnostics"])
    async def diagnostics_webhook() -> WebhookCheckResponse:
        return await check_webhook_handler(api_deps)

    async def telegram_webhook(request: Request) -> WebhookResponse:
        body = await request.body()
        return await telegram_webhook_handler(api_deps, body=body)

    async def webhook_wrong_method() -> PlainTextResponse:
        return PlainTextResponse("Only POST allowed", status_code=200)

    for path in WEBHOOK_PATHS:
        app.add_api_route(
            path,
            telegram_webhook,
            methods=["POST"],
            response_model=WebhookResponse,
            tags=["Telegram"],
        )
        app.add_api_route(
            path,
            webhook_wrong_method,
            methods=_NON_POST_METHODS,
            include_in_schema=False,
        )

    return app
