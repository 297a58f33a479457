import asyncio
import json
from dataclasses import dataclass

import pytest

from playlist_relay.api.handlers.telegram_webhook import (
    handle_confirmation,
    handle_file_upload,
    handle_list_request,
    telegram_webhook_handler,
)
from playlist_relay.api.schemas import WebhookResponse
from playlist_relay.clients.stub import (
    StubContentClient,
    StubMediaClient,
    StubRelayClient,
    StubTelegramClient,
)
from playlist_relay.domain.errors import AuthorizationError, ContentAuthenticationError
from playlist_relay.domain.intents import Confirmation, Greeting, ListRequest
from playlist_relay.services.bootstrap import RuntimeContainer, build_runtime_container
from tests.support import (
    CHAT_ID,
    PLAYLIST_TEXT,
    PLAYLIST_URLS,
    STRANGER,
    callback_update,
    document_update,
    make_container,
    make_settings,
    text_update,
)


def _dispatch(container: RuntimeContainer, body: bytes) -> WebhookResponse:
    return asyncio.run(telegram_webhook_handler(container.api_deps, body=body))


def _published(playlist: str = PLAYLIST_TEXT) -> StubContentClient:
    return StubContentClient(objects={"1.m3u": playlist.encode()})


@dataclass
class RejectingContentClient(StubContentClient):
    async def get_sha(self, *, path: str) -> str | None:
        raise ContentAuthenticationError("GitHub rejected the configured token: Bad credentials", status_code=401)

    async def read_file(self, *, path: str) -> bytes | None:
        raise ContentAuthenticationError("GitHub rejected the configured token: Bad credentials", status_code=401)


@pytest.mark.unit
@pytest.mark.parametrize(
    "body",
    [
        text_update("/start", user_id=STRANGER),
        text_update("/uploadserver", user_id=STRANGER),
        text_update("yes", user_id=STRANGER),
        callback_update("yes", user_id=STRANGER),
        document_update("list.m3u", user_id=STRANGER),
    ],
)
def test_stranger_gets_refusal_and_nothing_else_happens(body: bytes) -> None:
    telegram = StubTelegramClient(files={"doc-1": b"#EXTM3U"})
    content = _published()
    media = StubMediaClient(payloads={url: b"x" for url in PLAYLIST_URLS})
    relay = StubRelayClient()
    container = make_container(telegram=telegram, content=content, media=media, relay=relay)
    container.queue.put(str(STRANGER), PLAYLIST_URLS)

    response = _dispatch(container, body)

    assert response.ok is False
    assert response.detail == "unauthorized"
    assert telegram.texts == ["❌ Not allowed."]
    assert telegram.answered_callbacks == []
    assert telegram.file_requests == []
    assert content.calls == 0
    assert media.requested == []
    assert relay.uploads == []
    assert container.queue.peek(str(STRANGER)) is not None


@pytest.mark.unit
def test_greeting_names_the_playlist_extension() -> None:
    telegram = StubTelegramClient()
    response = _dispatch(make_container(telegram=telegram), text_update("/start"))

    assert response.ok is True
    assert response.intent == "greeting"
    assert ".m3u" in telegram.texts[0]
    assert "/uploadserver" in telegram.texts[0]


@pytest.mark.unit
def test_confirmation_without_listing_transfers_nothing() -> None:
    telegram = StubTelegramClient()
    relay = StubRelayClient()
    container = make_container(telegram=telegram, relay=relay)

    response = _dispatch(container, text_update("YES"))

    assert response.detail == "nothing_queued"
    assert telegram.texts == ["⚠️ Nothing queued. Send /uploadserver first."]
    assert relay.uploads == []


@pytest.mark.unit
def test_listing_then_confirmation_relays_every_item_once() -> None:
    telegram = StubTelegramClient()
    media = StubMediaClient(payloads={url: url.encode() for url in PLAYLIST_URLS})
    relay = StubRelayClient()
    container = make_container(telegram=telegram, content=_published(), media=media, relay=relay)

    listed = _dispatch(container, text_update("/uploadserver"))

    assert listed.detail == "queued:3"
    assert telegram.texts[0] == "📂 Reading 1.m3u..."
    listing = telegram.sent[-1]
    assert listing.text.startswith("🎬 Found 3 videos:")
    assert "1. First Movie.mkv" in listing.text
    assert "stream" not in listing.text
    assert listing.reply_markup is not None
    assert media.requested == []

    telegram.sent.clear()
    confirmed = _dispatch(container, text_update("Yes"))

    assert confirmed.detail == "uploaded:3,failed:0"
    assert media.requested == PLAYLIST_URLS
    assert [name for name, _ in relay.uploads] == ["First Movie.mkv", "episode-2.mp4", "third"]
    assert telegram.texts[0] == "📤 Uploading 3 videos..."
    assert telegram.texts[-1] == "🎉 Upload complete. 3 uploaded, 0 failed."
    assert container.queue.peek("1001") is None

    again = _dispatch(container, text_update("yes"))
    assert again.detail == "nothing_queued"
    assert len(relay.uploads) == 3


@pytest.mark.unit
def test_confirm_button_callback_is_answered_and_runs_batch() -> None:
    telegram = StubTelegramClient()
    relay = StubRelayClient()
    media = StubMediaClient(payloads={url: b"x" for url in PLAYLIST_URLS})
    container = make_container(telegram=telegram, content=_published(), media=media, relay=relay)
    _dispatch(container, text_update("/list"))

    response = _dispatch(container, callback_update("yes"))

    assert response.intent == "confirmation"
    assert response.detail == "uploaded:3,failed:0"
    assert telegram.answered_callbacks == ["cbq-1"]
    assert all(message.chat_id == CHAT_ID for message in telegram.sent)


@pytest.mark.unit
def test_listing_without_playlist_or_links() -> None:
    telegram = StubTelegramClient()
    missing = make_container(telegram=telegram)
    assert _dispatch(missing, text_update("/uploadserver")).detail == "playlist_missing"

    empty = make_container(telegram=telegram, content=_published("#EXTM3U\nhttps://cdn.example.com/a.m3u8\n"))
    empty.queue.put("1001", ["https://cdn.example.com/stale.mp4"])

    assert _dispatch(empty, text_update("/uploadserver")).detail == "no_candidates"
    assert empty.queue.peek("1001") is None
    assert telegram.texts[-1] == "⚠️ No video links found in 1.m3u."


@pytest.mark.unit
def test_relay_not_configured_is_reported() -> None:
    telegram = StubTelegramClient()
    container = build_runtime_container(
        make_settings(upload_url=None, upload_key=""),
        telegram=telegram,
        content=_published(),
    )

    response = _dispatch(container, text_update("/uploadserver"))

    assert container.transfer is None
    assert response.detail == "relay_disabled"
    assert telegram.texts == ["⚠️ Server upload is not configured."]


@pytest.mark.unit
def test_playlist_upload_is_stored_byte_for_byte_and_then_updated() -> None:
    first = b"\xef\xbb\xbf#EXTM3U\r\nhttps://cdn.example.com/a.mp4\r\n\x00"
    second = b"#EXTM3U\nhttps://cdn.example.com/b.mkv\n"
    telegram = StubTelegramClient(files={"doc-1": first, "doc-2": second})
    content = StubContentClient()
    container = make_container(telegram=telegram, content=content)

    created = _dispatch(container, document_update("My List.M3U", file_id="doc-1"))
    assert created.detail == "created"
    assert asyncio.run(content.read_file(path="1.m3u")) == first

    updated = _dispatch(container, document_update("list.m3u", file_id="doc-2"))
    assert updated.detail == "updated"
    assert asyncio.run(content.read_file(path="1.m3u")) == second
    assert content.puts[0] == ("1.m3u", None)
    assert content.puts[1][1] is not None
    assert telegram.texts[-1].startswith("✅ Updated 1.m3u on GitHub.")
    assert "raw.githubusercontent.com/owner/playlists/main/1.m3u" in telegram.texts[-1]


@pytest.mark.unit
def test_wrong_extension_is_rejected_before_any_download() -> None:
    telegram = StubTelegramClient(files={"doc-1": b"data"})
    content = StubContentClient()
    container = make_container(telegram=telegram, content=content)

    response = _dispatch(container, document_update("notes.txt"))

    assert response.ok is False
    assert response.detail == "validation_error"
    assert telegram.texts == ["❌ Only .m3u files allowed."]
    assert telegram.file_requests == []
    assert content.calls == 0


@pytest.mark.unit
def test_rejected_repository_token_is_a_configuration_error() -> None:
    telegram = StubTelegramClient(files={"doc-1": b"#EXTM3U"})
    container = make_container(telegram=telegram, content=RejectingContentClient())

    upload = _dispatch(container, document_update("list.m3u"))
    listing = _dispatch(container, text_update("/uploadserver"))

    assert upload.detail == "configuration_error"
    assert listing.detail == "configuration_error"
    assert telegram.texts[0].startswith("⛔ Configuration error:")
    assert "Bad credentials" in telegram.texts[0]


@pytest.mark.unit
def test_unhandled_text_is_acknowledged_silently() -> None:
    telegram = StubTelegramClient()
    response = _dispatch(make_container(telegram=telegram), text_update("what is this"))

    assert response.ok is True
    assert response.intent == "unhandled"
    assert telegram.texts == []


@pytest.mark.unit
def test_malformed_update_is_reported_without_dispatch() -> None:
    telegram = StubTelegramClient()
    response = _dispatch(make_container(telegram=telegram), b"{broken")

    assert response.ok is False
    assert response.intent is None
    assert response.detail == "malformed JSON body"
    assert telegram.sent == []


@pytest.mark.unit
def test_handlers_reject_intents_they_cannot_serve() -> None:
    deps = make_container().api_deps

    with pytest.raises(AuthorizationError):
        asyncio.run(handle_list_request(deps, ListRequest(requester=None, chat_id=CHAT_ID), None))
    with pytest.raises(AuthorizationError):
        asyncio.run(handle_confirmation(deps, Confirmation(requester=None, chat_id=CHAT_ID), None))
    with pytest.raises(TypeError):
        asyncio.run(handle_file_upload(deps, Greeting(requester="1001", chat_id=CHAT_ID), None))


@pytest.mark.unit
def test_update_without_sender_is_refused() -> None:
    telegram = StubTelegramClient()
    body = json.dumps(
        {"update_id": 9, "message": {"message_id": 1, "chat": {"id": CHAT_ID}, "text": "/uploadserver"}}
    ).encode()

    response = _dispatch(make_container(telegram=telegram), body)

    assert response.detail == "unauthorized"
    assert telegram.texts == ["❌ Not allowed."]
