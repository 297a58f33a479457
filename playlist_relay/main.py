from __future__ import annotations

import argparse
import logging
import os
import sys
import uuid

import uvicorn
from fastapi import FastAPI

from playlist_relay.api.http_app import build_app
from playlist_relay.domain.errors import ConfigurationError
from playlist_relay.logging_setup import configure_logging
from playlist_relay.services.bootstrap import build_runtime_container
from playlist_relay.settings import relay_settings_from_env

DEFAULT_PORT = 8000


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Telegram playlist relay webhook")
    parser.add_argument("--host", default=os.getenv("APP_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument(
        "--dry-run-startup",
        action="store_true",
        help="Validate settings and exit",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable code reload (dev mode)",
    )
    return parser.parse_args(argv)


def create_runtime_app() -> FastAPI:
    """ASGI factory for `uvicorn --factory` and reload mode."""
    configure_logging()
    settings = relay_settings_from_env()
    container = build_runtime_container(settings)
    return build_app(
        api_deps=container.api_deps,
        run_id=str(uuid.uuid4()),
        on_startup=container.on_startup,
        on_shutdown=container.on_shutdown,
    )


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    configure_logging()
    try:
        settings = relay_settings_from_env()
    except ConfigurationError as exc:
        sys.stderr.write(f"ERROR: {exc}\n")
        return 2

    run_id = str(uuid.uuid4())
    logger = logging.getLogger("relay.runtime")
    logger.info(
        "runtime initialized",
        extra={"run_id": run_id, "path": settings.playlist_path},
    )

    if args.dry_run_startup:
        logger.info("dry-run startup complete", extra={"run_id": run_id})
        return 0

    port = args.port if args.port is not None else int(os.getenv("PORT", DEFAULT_PORT))
    if args.reload:
        uvicorn.run(
            "playlist_relay.main:create_runtime_app",
            host=args.host,
            port=port,
            log_level="warning",
            reload=True,
            factory=True,
        )
        return 0

    container = build_runtime_container(settings)
    app = build_app(
        api_deps=container.api_deps,
        run_id=run_id,
        on_startup=container.on_startup,
        on_shutdown=container.on_shutdown,
    )
    uvicorn.run(app, host=args.host, port=port, log_level="warning")
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
