from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from playlist_relay.domain.contracts import CONFIRMATION_TOKEN
from playlist_relay.domain.models import RequesterId

GREETING_COMMANDS = frozenset({"/start"})
LIST_COMMANDS = frozenset({"/uploadserver", "/list"})


@dataclass(frozen=True)
class InboundMessage:
    """Validated view of one update, independent of the wire schema."""

    requester: RequesterId | None
    chat_id: int | None
    text: str | None = None
    file_id: str | None = None
    file_name: str | None = None
    callback_query_id: str | None = None

    @property
    def has_document(self) -> bool:
        return self.file_id is not None


@dataclass(frozen=True)
class _Intent:
    kind: ClassVar[str] = "unhandled"
    requester: RequesterId | None
    chat_id: int | None


@dataclass(frozen=True)
class Greeting(_Intent):
    kind: ClassVar[str] = "greeting"


@dataclass(frozen=True)
class ListRequest(_Intent):
    kind: ClassVar[str] = "list_request"


@dataclass(frozen=True)
class Confirmation(_Intent):
    kind: ClassVar[str] = "confirmation"


@dataclass(frozen=True)
class FileUpload(_Intent):
    kind: ClassVar[str] = "file_upload"
    file_id: str = ""
    file_name: str | None = None


@dataclass(frozen=True)
class Unhandled(_Intent):
    kind: ClassVar[str] = "unhandled"


Intent = Greeting | ListRequest | Confirmation | FileUpload | Unhandled


def classify_message(message: InboundMessage) -> Intent:
    """First match wins: greeting, listing, confirmation, document, fallback."""
    requester = message.requester
    chat_id = message.chat_id
    command = _command_of(message.text)

    if command in GREETING_COMMANDS:
        return Greeting(requester=requester, chat_id=chat_id)
    if command in LIST_COMMANDS:
        return ListRequest(requester=requester, chat_id=chat_id)
    if is_affirmative(message.text):
        return Confirmation(requester=requester, chat_id=chat_id)
    if message.file_id is not None:
        return FileUpload(
            requester=requester,
            chat_id=chat_id,
            file_id=message.file_id,
            file_name=message.file_name,
        )
    return Unhandled(requester=requester, chat_id=chat_id)


def is_affirmative(text: str | None) -> bool:
    if text is None:
        return False
    return text.strip().lower() == CONFIRMATION_TOKEN


def _command_of(text: str | None) -> str | None:
    if not text or not text.startswith("/"):
        return None
    head = text.split(maxsplit=1)[0]
    # "/start@my_bot" addresses a specific bot in group chats.
    return head.split("@", 1)[0].lower()
