from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from playlist_relay.domain.errors import UpstreamError


@dataclass
class SentMessage:
    chat_id: int | str
    text: str
    reply_markup: dict[str, object] | None = None


@dataclass
class StubTelegramClient:
    files: dict[str, bytes] = field(default_factory=dict)
    sent: list[SentMessage] = field(default_factory=list)
    answered_callbacks: list[str] = field(default_factory=list)
    file_requests: list[str] = field(default_factory=list)
    webhook_info: dict[str, object] = field(default_factory=dict)
    fail_send: bool = False

    async def get_file_path(self, *, file_id: str) -> str:
        self.file_requests.append(file_id)
        if file_id not in self.files:
            raise UpstreamError("telegram", f"file not found: {file_id}", status_code=400)
        return f"documents/{file_id}"

    async def download_file(self, *, file_path: str) -> bytes:
        file_id = file_path.rsplit("/", 1)[-1]
        payload = self.files.get(file_id)
        if payload is None:
            raise UpstreamError("telegram", "file download failed", status_code=404)
        return payload

    async def send_message(
        self,
        *,
        chat_id: int | str,
        text: str,
        reply_markup: dict[str, object] | None = None,
    ) -> None:
        if self.fail_send:
            raise UpstreamError("telegram", "sendMessage failed", status_code=502)
        self.sent.append(SentMessage(chat_id=chat_id, text=text, reply_markup=reply_markup))

    async def answer_callback_query(self, *, callback_query_id: str, text: str | None = None) -> None:
        del text
        self.answered_callbacks.append(callback_query_id)

    async def get_webhook_info(self) -> dict[str, object]:
        return dict(self.webhook_info)

    @property
    def texts(self) -> list[str]:
        return [message.text for message in self.sent]


@dataclass
class StubContentClient:
    """In-memory repository keyed by path; sha is the sha1 of the stored bytes."""

    repo: str = "owner/playlists"
    branch: str = "main"
    objects: dict[str, bytes] = field(default_factory=dict)
    puts: list[tuple[str, str | None]] = field(default_factory=list)
    calls: int = 0

    def public_url(self, *, path: str) -> str:
        return f"https://raw.githubusercontent.com/{self.repo}/{self.branch}/{path}"

    async def verify_access(self) -> None:
        self.calls += 1

    async def get_sha(self, *, path: str) -> str | None:
        self.calls += 1
        payload = self.objects.get(path)
        if payload is None:
            return None
        return hashlib.sha1(payload).hexdigest()

    async def read_file(self, *, path: str) -> bytes | None:
        self.calls += 1
        return self.objects.get(path)

    async def put_file(self, *, path: str, payload: bytes, message: str, sha: str | None) -> str:
        del message
        self.calls += 1
        current = self.objects.get(path)
        current_sha = hashlib.sha1(current).hexdigest() if current is not None else None
        if current_sha != sha:
            raise UpstreamError("github", f"{path} does not match {sha}", status_code=409)
        self.objects[path] = payload
        self.puts.append((path, sha))
        return hashlib.sha1(payload).hexdigest()


@dataclass
class StubMediaClient:
    payloads: dict[str, bytes] = field(default_factory=dict)
    failures: dict[str, int] = field(default_factory=dict)
    requested: list[str] = field(default_factory=list)

    async def download(self, *, url: str) -> bytes:
        self.requested.append(url)
        if url in self.failures:
            raise UpstreamError("download", "unexpected status", status_code=self.failures[url])
        payload = self.payloads.get(url)
        if payload is None:
            raise UpstreamError("download", "unexpected status", status_code=404)
        return payload


@dataclass
class StubRelayClient:
    uploads: list[tuple[str, bytes]] = field(default_factory=list)
    rejected_names: set[str] = field(default_factory=set)

    async def upload(self, *, name: str, payload: bytes) -> None:
        if name in self.rejected_names:
            raise UpstreamError("relay", "upload failed")
        self.uploads.append((name, payload))
