from __future__ import annotations

import logging

import httpx

from playlist_relay.domain.errors import UpstreamError

TELEGRAM_API_BASE = "https://api.telegram.org"
UPSTREAM = "telegram"

logger = logging.getLogger("relay.telegram")


class HttpTelegramClient:
    """Bot API over a shared httpx client. The token never appears in errors."""

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        bot_token: str,
        api_timeout: float = 5.0,
        file_timeout: float = 10.0,
        api_base: str = TELEGRAM_API_BASE,
    ) -> None:
        self._http = http
        self._api_url = f"{api_base}/bot{bot_token}"
        self._file_url = f"{api_base}/file/bot{bot_token}"
        self._api_timeout = api_timeout
        self._file_timeout = file_timeout

    async def get_file_path(self, *, file_id: str) -> str:
        result = await self._call("getFile", params={"file_id": file_id})
        file_path = result.get("file_path") if isinstance(result, dict) else None
        if not isinstance(file_path, str) or not file_path:
            raise UpstreamError(UPSTREAM, "getFile returned no file_path")
        return file_path

    async def download_file(self, *, file_path: str) -> bytes:
        try:
            response = await self._http.get(f"{self._file_url}/{file_path}", timeout=self._file_timeout)
        except httpx.HTTPError as exc:
            raise UpstreamError(UPSTREAM, f"file download failed ({type(exc).__name__})") from exc
        if response.status_code != 200:
            raise UpstreamError(UPSTREAM, "file download failed", status_code=response.status_code)
        return response.content

    async def send_message(
        self,
        *,
        chat_id: int | str,
        text: str,
        reply_markup: dict[str, object] | None = None,
    ) -> None:
        payload: dict[str, object] = {"chat_id": chat_id, "text": text}
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        await self._call("sendMessage", json=payload)

    async def answer_callback_query(self, *, callback_query_id: str, text: str | None = None) -> None:
        payload: dict[str, object] = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        await self._call("answerCallbackQuery", json=payload)

    async def get_webhook_info(self) -> dict[str, object]:
        result = await self._call("getWebhookInfo")
        return result if isinstance(result, dict) else {}

    async def _call(
        self,
        method: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, object] | None = None,
    ) -> object:
        url = f"{self._api_url}/{method}"
        try:
            if json is None:
                response = await self._http.get(url, params=params, timeout=self._api_timeout)
            else:
                response = await self._http.post(url, json=json, timeout=self._api_timeout)
        except httpx.HTTPError as exc:
            raise UpstreamError(UPSTREAM, f"{method} failed ({type(exc).__name__})") from exc

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise UpstreamError(UPSTREAM, f"{method} returned a non-JSON body", status_code=response.status_code)
        if response.status_code != 200 or body.get("ok") is not True:
            description = body.get("description") or f"{method} failed"
            raise UpstreamError(UPSTREAM, str(description), status_code=response.status_code)

        logger.debug("telegram call ok", extra={"method": method})
        return body.get("result")
