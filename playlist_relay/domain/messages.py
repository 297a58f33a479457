from __future__ import annotations

from collections.abc import Sequence

from playlist_relay.domain.contracts import CONFIRMATION_TOKEN
from playlist_relay.domain.models import BatchSummary, PublishResult, TransferItem, TransferOutcome

# Telegram rejects sendMessage texts above this many characters.
TELEGRAM_TEXT_LIMIT = 4096

NOT_ALLOWED = "❌ Not allowed."
NOTHING_QUEUED = "⚠️ Nothing queued. Send /uploadserver first."
RELAY_DISABLED = "⚠️ Server upload is not configured."


def welcome_text(extension: str) -> str:
    return f"👋 Send me an {extension} file.\nOr use /uploadserver to upload videos."


def reading_playlist_text(path: str) -> str:
    return f"📂 Reading {path}..."


def playlist_missing_text(path: str) -> str:
    return f"⚠️ No playlist found at {path}. Send an .m3u file first."


def no_candidates_text(path: str) -> str:
    return f"⚠️ No video links found in {path}."


def listing_text(items: Sequence[TransferItem]) -> str:
    lines = [f"🎬 Found {len(items)} videos:", ""]
    lines.extend(f"{index}. {item.name}" for index, item in enumerate(items, start=1))
    lines.append("")
    lines.append(f"Reply {CONFIRMATION_TOKEN.upper()} to start uploading.")
    return "\n".join(lines)


def confirmation_markup() -> dict[str, object]:
    return {
        "inline_keyboard": [
            [{"text": "✅ Yes, upload", "callback_data": CONFIRMATION_TOKEN}],
        ]
    }


def transfer_started_text(total: int) -> str:
    return f"📤 Uploading {total} videos..."


def outcome_text(outcome: TransferOutcome) -> str:
    if outcome.success:
        return f"✅ Uploaded: {outcome.item.name}"
    return f"❌ Failed: {outcome.item.name} ({outcome.reason})"


def summary_text(summary: BatchSummary) -> str:
    return f"🎉 Upload complete. {summary.succeeded} uploaded, {summary.failed} failed."


def unsupported_file_text(extension: str) -> str:
    return f"Only {extension} files allowed."


def published_text(result: PublishResult) -> str:
    return f"✅ Updated {result.path} on GitHub.\n{result.public_url}"


def split_text(text: str, limit: int = TELEGRAM_TEXT_LIMIT) -> list[str]:
    """Split on line boundaries so each chunk fits one message."""
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    current: list[str] = []
    size = 0
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append("\n".join(current))
                current, size = [], 0
            chunks.append(line[:limit])
            line = line[limit:]
        # Joining adds one newline per line after the first.
        added = len(line) + (1 if current else 0)
        if current and size + added > limit:
            chunks.append("\n".join(current))
            current, size = [], 0
            added = len(line)
        current.append(line)
        size += added
    if current:
        chunks.append("\n".join(current))
    return chunks
