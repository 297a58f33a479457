from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable

import pydantic

from playlist_relay.api.handlers.deps import ApiDeps
from playlist_relay.api.schemas import TelegramUpdate, WebhookResponse
from playlist_relay.domain import messages
from playlist_relay.domain.error_taxonomy import classify_error, error_code_for, requester_notice
from playlist_relay.domain.errors import AuthorizationError, RelayError, UpdateValidationError
from playlist_relay.domain.intents import (
    Confirmation,
    FileUpload,
    Greeting,
    InboundMessage,
    Intent,
    ListRequest,
    Unhandled,
    classify_message,
)
from playlist_relay.domain.use_cases.listing import prepare_listing
from playlist_relay.domain.use_cases.notify import Notifier
from playlist_relay.domain.use_cases.publish import publish_playlist

COMPONENT_ID = "api.telegram_webhook"
logger = logging.getLogger("relay.webhook")


def parse_update(body: bytes) -> InboundMessage:
    """Validate a raw webhook body into the fields the dispatcher uses."""
    if not body.strip():
        raise UpdateValidationError("empty update")
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise UpdateValidationError("malformed JSON body") from exc
    if not isinstance(payload, dict):
        raise UpdateValidationError("update must be a JSON object")

    try:
        update = TelegramUpdate.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise UpdateValidationError(f"unrecognized update shape ({exc.error_count()} errors)") from exc

    if update.message is not None:
        message = update.message
        document = message.document
        return InboundMessage(
            requester=str(message.from_user.id) if message.from_user is not None else None,
            chat_id=message.chat.id,
            text=message.text,
            file_id=document.file_id if document is not None else None,
            file_name=document.file_name if document is not None else None,
        )

    if update.callback_query is not None:
        query = update.callback_query
        return InboundMessage(
            requester=str(query.from_user.id),
            chat_id=query.message.chat.id if query.message is not None else None,
            text=query.data,
            callback_query_id=query.id,
        )

    raise UpdateValidationError("no message in update")


async def telegram_webhook_handler(deps: ApiDeps, *, body: bytes) -> WebhookResponse:
    try:
        inbound = parse_update(body)
    except UpdateValidationError as exc:
        logger.warning(
            "webhook update rejected",
            extra={"error": str(exc), "raw": body.decode("utf-8", errors="replace")[:2000]},
        )
        return WebhookResponse(ok=False, detail=str(exc))

    intent = classify_message(inbound)
    logger.info(
        "webhook update received",
        extra={"intent": intent.kind, "requester": intent.requester, "chat_id": intent.chat_id},
    )
    notify = Notifier(telegram=deps.telegram, chat_id=intent.chat_id) if intent.chat_id is not None else None
    try:
        authorize(deps, intent)
        if inbound.callback_query_id is not None:
            await _answer_callback(deps, inbound.callback_query_id)
        handler = _HANDLERS[type(intent)]
        detail = await handler(deps, intent, notify)
    except RelayError as exc:
        await _report_error(exc, intent=intent, notify=notify)
        return WebhookResponse(ok=False, intent=intent.kind, detail=error_code_for(exc))
    except Exception as exc:
        logger.exception(
            "webhook handler crashed",
            extra={"intent": intent.kind, "requester": intent.requester},
        )
        if notify is not None:
            await notify(requester_notice(exc))
        return WebhookResponse(ok=False, intent=intent.kind, detail="internal_error")

    return WebhookResponse(ok=True, intent=intent.kind, detail=detail)


def authorize(deps: ApiDeps, intent: Intent) -> None:
    """Every branch, greeting included, requires an allow-listed requester."""
    if not deps.settings.is_allowed(intent.requester):
        raise AuthorizationError(f"requester {intent.requester} is not allowed")


Notify = Notifier | None
IntentHandler = Callable[[ApiDeps, Intent, Notify], Awaitable[str | None]]


async def handle_greeting(deps: ApiDeps, intent: Intent, notify: Notify) -> str | None:
    del intent
    if notify is not None:
        await notify(messages.welcome_text(deps.settings.playlist_extension))
    return None


async def handle_list_request(deps: ApiDeps, intent: Intent, notify: Notify) -> str | None:
    requester = _requester_of(intent)
    settings = deps.settings
    if deps.transfer is None:
        if notify is not None:
            await notify(messages.RELAY_DISABLED)
        return "relay_disabled"

    if notify is not None:
        await notify(messages.reading_playlist_text(settings.playlist_path))
    result = await prepare_listing(
        content=deps.content,
        queue=deps.queue,
        requester=requester,
        playlist_path=settings.playlist_path,
        media_markers=settings.media_markers,
        trusted_hosts=settings.trusted_hosts,
    )
    if not result.playlist_found:
        if notify is not None:
            await notify(messages.playlist_missing_text(settings.playlist_path))
        return "playlist_missing"
    if result.batch is None:
        if notify is not None:
            await notify(messages.no_candidates_text(settings.playlist_path))
        return "no_candidates"

    logger.info(
        "transfer batch queued",
        extra={"batch_id": result.batch.batch_id, "requester": requester, "total": len(result.batch.urls)},
    )
    if notify is not None:
        await notify(messages.listing_text(result.batch.items()), messages.confirmation_markup())
    return f"queued:{len(result.batch.urls)}"


async def handle_confirmation(deps: ApiDeps, intent: Intent, notify: Notify) -> str | None:
    requester = _requester_of(intent)
    batch = deps.queue.take(requester)
    if batch is None:
        if notify is not None:
            await notify(messages.NOTHING_QUEUED)
        return "nothing_queued"
    if deps.transfer is None:
        if notify is not None:
            await notify(messages.RELAY_DISABLED)
        return "relay_disabled"

    sink = notify if notify is not None else _discard
    await sink(messages.transfer_started_text(len(batch.urls)))
    summary = await deps.transfer.run(
        batch_id=batch.batch_id,
        requester=requester,
        items=batch.items(),
        notify=sink,
    )
    return f"uploaded:{summary.succeeded},failed:{summary.failed}"


async def handle_file_upload(deps: ApiDeps, intent: Intent, notify: Notify) -> str | None:
    if not isinstance(intent, FileUpload):
        raise TypeError(f"expected a file upload intent, got {intent.kind}")
    settings = deps.settings
    result = await publish_playlist(
        telegram=deps.telegram,
        content=deps.content,
        file_id=intent.file_id,
        file_name=intent.file_name,
        extension=settings.playlist_extension,
        target_path=settings.playlist_path,
    )
    if notify is not None:
        await notify(messages.published_text(result))
    return "created" if result.created else "updated"


async def handle_unhandled(deps: ApiDeps, intent: Intent, notify: Notify) -> str | None:
    del deps, intent, notify
    return None


_HANDLERS: dict[type, IntentHandler] = {
    Greeting: handle_greeting,
    ListRequest: handle_list_request,
    Confirmation: handle_confirmation,
    FileUpload: handle_file_upload,
    Unhandled: handle_unhandled,
}


async def _report_error(exc: RelayError, *, intent: Intent, notify: Notify) -> None:
    code = error_code_for(exc)
    extra = {
        "intent": intent.kind,
        "requester": intent.requester,
        "chat_id": intent.chat_id,
        "error": str(exc),
        "status_code": getattr(exc, "status_code", None),
    }
    if classify_error(code) == "fatal":
        logger.critical("configuration rejected at request time", extra=extra)
    elif isinstance(exc, AuthorizationError):
        logger.warning("requester rejected", extra=extra)
    else:
        logger.error("webhook request failed", extra=extra)

    if notify is not None:
        await notify(requester_notice(exc))


async def _answer_callback(deps: ApiDeps, callback_query_id: str) -> None:
    try:
        await deps.telegram.answer_callback_query(callback_query_id=callback_query_id)
    except RelayError as exc:
        logger.warning("callback query not answered", extra={"error": str(exc)})


def _requester_of(intent: Intent) -> str:
    if intent.requester is None:
        raise AuthorizationError("update has no sender")
    return intent.requester


async def _discard(text: str) -> None:
    del text
