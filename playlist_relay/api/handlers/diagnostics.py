from __future__ import annotations

import logging
from collections.abc import Mapping

from playlist_relay.api.handlers.deps import ApiDeps
from playlist_relay.api.schemas import EnvCheckResponse, WebhookCheckResponse
from playlist_relay.domain.errors import RelayError
from playlist_relay.settings import REQUIRED_ENV_VARS, missing_env_vars

COMPONENT_ID = "api.diagnostics"
logger = logging.getLogger("relay.diagnostics")


async def check_env_handler(environ: Mapping[str, str] | None = None) -> EnvCheckResponse:
    """Required variables fail the check; unset optional ones are only listed."""
    missing = missing_env_vars(environ)
    missing_required = [name for name in missing if name in REQUIRED_ENV_VARS]
    if missing_required:
        return EnvCheckResponse(
            success=False,
            missing=missing,
            error=f"Missing: {', '.join(missing_required)}",
        )
    return EnvCheckResponse(success=True, missing=missing)


async def check_webhook_handler(deps: ApiDeps) -> WebhookCheckResponse:
    expected_url = deps.settings.webhook_url
    try:
        info = await deps.telegram.get_webhook_info()
    except RelayError as exc:
        logger.warning("webhook info unavailable", extra={"error": str(exc)})
        return WebhookCheckResponse(success=False, expected_url=expected_url, error=str(exc))

    registered_url = info.get("url") if isinstance(info.get("url"), str) else None
    pending = info.get("pending_update_count")
    pending_update_count = pending if isinstance(pending, int) else None

    if expected_url is None:
        return WebhookCheckResponse(
            success=False,
            registered_url=registered_url,
            pending_update_count=pending_update_count,
            error="WEBHOOK_URL is not configured",
        )
    matches = registered_url == expected_url
    return WebhookCheckResponse(
        success=matches,
        registered_url=registered_url,
        expected_url=expected_url,
        pending_update_count=pending_update_count,
        error=None if matches else "Webhook URL mismatch",
    )
