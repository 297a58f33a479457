from __future__ import annotations

import json
from dataclasses import replace

from playlist_relay.clients.stub import (
    StubContentClient,
    StubMediaClient,
    StubRelayClient,
    StubTelegramClient,
)
from playlist_relay.services.bootstrap import RuntimeContainer, build_runtime_container
from playlist_relay.settings import RelaySettings

ALLOWED_USER = 1001
STRANGER = 2002
CHAT_ID = 555

PLAYLIST_TEXT = "\n".join(
    [
        "#EXTM3U",
        "#EXTINF:-1,First",
        "https://cdn.example.com/movies/First%20Movie.mkv?token=abc",
        "#EXTINF:-1,Live",
        "https://cdn.example.com/live/stream.m3u8",
        "#EXTINF:-1,Second",
        "https://cdn.example.com/shows/episode-2.mp4",
        "#EXTINF:-1,Third",
        "https://www.seedr.cc/dl/xyz/third",
        "not a link",
    ]
)
PLAYLIST_URLS = [
    "https://cdn.example.com/movies/First%20Movie.mkv?token=abc",
    "https://cdn.example.com/shows/episode-2.mp4",
    "https://www.seedr.cc/dl/xyz/third",
]


def make_settings(**overrides: object) -> RelaySettings:
    settings = RelaySettings(
        bot_token="123:test-token",
        github_token="gh-test-token",
        github_repo="owner/playlists",
        allowed_user_ids=frozenset({str(ALLOWED_USER)}),
        upload_url="https://relay.example.com/upload",
        upload_key="relay-key",
    )
    return replace(settings, **overrides)  # type: ignore[arg-type]


def make_container(
    settings: RelaySettings | None = None,
    *,
    telegram: StubTelegramClient | None = None,
    content: StubContentClient | None = None,
    media: StubMediaClient | None = None,
    relay: StubRelayClient | None = None,
) -> RuntimeContainer:
    return build_runtime_container(
        settings or make_settings(),
        telegram=telegram or StubTelegramClient(),
        content=content or StubContentClient(),
        media=media or StubMediaClient(),
        relay=relay or StubRelayClient(),
    )


def text_update(text: str, *, user_id: int = ALLOWED_USER, chat_id: int = CHAT_ID) -> bytes:
    return json.dumps(
        {
            "update_id": 1,
            "message": {
                "message_id": 10,
                "chat": {"id": chat_id, "type": "private"},
                "from": {"id": user_id, "is_bot": False},
                "text": text,
            },
        }
    ).encode()


def document_update(
    file_name: str,
    *,
    file_id: str = "doc-1",
    user_id: int = ALLOWED_USER,
    chat_id: int = CHAT_ID,
) -> bytes:
    return json.dumps(
        {
            "update_id": 2,
            "message": {
                "message_id": 11,
                "chat": {"id": chat_id, "type": "private"},
                "from": {"id": user_id, "is_bot": False},
                "document": {"file_id": file_id, "file_name": file_name},
            },
        }
    ).encode()


def callback_update(data: str, *, user_id: int = ALLOWED_USER, chat_id: int = CHAT_ID) -> bytes:
    return json.dumps(
        {
            "update_id": 3,
            "callback_query": {
                "id": "cbq-1",
                "data": data,
                "from": {"id": user_id, "is_bot": False},
                "message": {"message_id": 12, "chat": {"id": chat_id}},
            },
        }
    ).encode()
