from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from playlist_relay.api.http_app import build_app
from playlist_relay.clients.stub import (
    StubContentClient,
    StubMediaClient,
    StubRelayClient,
    StubTelegramClient,
)
from playlist_relay.domain.errors import ContentAuthenticationError
from playlist_relay.services.bootstrap import RuntimeContainer
from tests.support import (
    PLAYLIST_TEXT,
    PLAYLIST_URLS,
    make_container,
    make_settings,
    text_update,
)


def _client(container: RuntimeContainer) -> TestClient:
    app = build_app(
        api_deps=container.api_deps,
        run_id="integration-api",
        on_startup=container.on_startup,
        on_shutdown=container.on_shutdown,
    )
    return TestClient(app)


@pytest.mark.integration
@pytest.mark.parametrize("path", ["/webhook", "/api/bot"])
def test_webhook_answers_200_to_everything(path: str) -> None:
    with _client(make_container()) as client:
        wrong_method = client.get(path)
        malformed = client.post(path, content=b"{broken", headers={"Content-Type": "application/json"})
        empty = client.post(path, content=b"")

    assert wrong_method.status_code == 200
    assert wrong_method.text == "Only POST allowed"
    assert malformed.status_code == 200
    assert malformed.json() == {"ok": False, "intent": None, "detail": "malformed JSON body"}
    assert empty.status_code == 200
    assert empty.json()["detail"] == "empty update"


@pytest.mark.integration
def test_full_relay_flow_is_visible_in_status_progress_and_logs() -> None:
    telegram = StubTelegramClient()
    media = StubMediaClient(
        payloads={PLAYLIST_URLS[0]: b"a", PLAYLIST_URLS[2]: b"c"},
        failures={PLAYLIST_URLS[1]: 500},
    )
    relay = StubRelayClient()
    content = StubContentClient(objects={"1.m3u": PLAYLIST_TEXT.encode()})
    container = make_container(telegram=telegram, content=content, media=media, relay=relay)

    with _client(container) as client:
        listed = client.post("/webhook", content=text_update("/uploadserver"))
        status_before = client.get("/status").json()
        confirmed = client.post("/api/bot", content=text_update("yes"))
        progress = client.get("/upload-progress").json()
        status_after = client.get("/status").json()
        logs = client.get("/logs", params={"limit": 200}).json()

    assert listed.json() == {"ok": True, "intent": "list_request", "detail": "queued:3"}
    assert status_before["pending_batches"] == 1
    assert status_before["relay_enabled"] is True
    assert status_before["run_id"] == "integration-api"
    assert confirmed.json()["detail"] == "uploaded:2,failed:1"
    assert status_after["pending_batches"] == 0
    assert status_after["transfer_active"] is False

    assert progress["active"] is False
    assert progress["total"] == 3
    assert progress["completed"] == 3
    assert progress["succeeded"] == 2
    assert progress["failed"] == 1
    assert progress["batch_id"].startswith("batch_")
    assert progress["finished_at"] is not None

    messages = [entry["message"] for entry in logs]
    assert messages[0] == "relay started"
    assert "transfer batch queued" in messages
    assert "transfer item failed" in messages
    seqs = [entry["seq"] for entry in logs]
    assert seqs == sorted(seqs)


@pytest.mark.integration
def test_logs_keep_raw_payload_of_rejected_updates_and_honor_limit() -> None:
    with _client(make_container()) as client:
        client.post("/webhook", content=b"{broken")
        rejected = client.get("/logs").json()[-1]
        limited = client.get("/logs", params={"limit": 1}).json()
        invalid = client.get("/logs", params={"limit": 0})

    assert rejected["message"] == "webhook update rejected"
    assert rejected["severity"] == "WARNING"
    assert rejected["raw"] == "{broken"
    assert len(limited) == 1
    assert invalid.status_code == 422


@pytest.mark.integration
def test_env_diagnostics(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("BOT_TOKEN", "GITHUB_TOKEN", "GITHUB_REPO", "MY_ID", "UPLOAD_URL", "UPLOAD_KEY", "WEBHOOK_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BOT_TOKEN", "123:abc")
    monkeypatch.setenv("MY_ID", "1001")

    with _client(make_container()) as client:
        failing = client.get("/diagnostics/env").json()
        monkeypatch.setenv("GITHUB_TOKEN", "gh")
        monkeypatch.setenv("GITHUB_REPO", "owner/playlists")
        passing = client.get("/diagnostics/env").json()

    assert failing["success"] is False
    assert failing["error"] == "Missing: GITHUB_TOKEN, GITHUB_REPO"
    assert passing["success"] is True
    assert passing["missing"] == ["UPLOAD_URL", "UPLOAD_KEY", "WEBHOOK_URL"]


@pytest.mark.integration
def test_webhook_diagnostics_compare_registered_url() -> None:
    expected = "https://relay.example.com/webhook"
    matching = make_container(
        make_settings(webhook_url=expected),
        telegram=StubTelegramClient(webhook_info={"url": expected, "pending_update_count": 2}),
    )
    stale = make_container(
        make_settings(webhook_url=expected),
        telegram=StubTelegramClient(webhook_info={"url": "https://old.example.com/webhook"}),
    )
    unconfigured = make_container(telegram=StubTelegramClient(webhook_info={"url": expected}))

    with _client(matching) as client:
        ok = client.get("/diagnostics/webhook").json()
    with _client(stale) as client:
        mismatch = client.get("/diagnostics/webhook").json()
    with _client(unconfigured) as client:
        missing = client.get("/diagnostics/webhook").json()

    assert ok["success"] is True
    assert ok["pending_update_count"] == 2
    assert mismatch["success"] is False
    assert mismatch["error"] == "Webhook URL mismatch"
    assert missing["success"] is False
    assert missing["error"] == "WEBHOOK_URL is not configured"


@dataclass
class RejectingContentClient(StubContentClient):
    async def verify_access(self) -> None:
        self.calls += 1
        raise ContentAuthenticationError("GitHub rejected the configured token: Bad credentials", status_code=401)


@pytest.mark.integration
def test_rejected_credentials_abort_startup_when_verification_enabled() -> None:
    content = RejectingContentClient()
    container = make_container(make_settings(verify_credentials_on_startup=True), content=content)

    with pytest.raises(Exception):
        with _client(container):
            pass

    assert content.calls == 1


@pytest.mark.integration
def test_health() -> None:
    with _client(make_container()) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
