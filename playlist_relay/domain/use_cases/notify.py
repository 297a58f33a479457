from __future__ import annotations

import logging
from dataclasses import dataclass

from playlist_relay.domain.contracts import TelegramClient
from playlist_relay.domain.errors import UpstreamError
from playlist_relay.domain.messages import split_text

logger = logging.getLogger("relay.notify")


@dataclass(frozen=True)
class Notifier:
    """Sends text to one requester's chat.

    Delivery failures are logged and reported as False so a running batch is
    never aborted by a lost progress message.
    """

    telegram: TelegramClient
    chat_id: int

    async def __call__(self, text: str, reply_markup: dict[str, object] | None = None) -> bool:
        # Telegram rejects whitespace-only texts.
        chunks = [chunk for chunk in split_text(text) if chunk.strip()] or [text]
        delivered = True
        for index, chunk in enumerate(chunks):
            # Buttons belong under the last chunk of a split message.
            markup = reply_markup if index == len(chunks) - 1 else None
            try:
                await self.telegram.send_message(chat_id=self.chat_id, text=chunk, reply_markup=markup)
            except UpstreamError as exc:
                delivered = False
                logger.warning(
                    "notification not delivered",
                    extra={"chat_id": self.chat_id, "error": str(exc)},
                )
        return delivered
