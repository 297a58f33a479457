from __future__ import annotations

import httpx

from playlist_relay.domain.errors import UpstreamError

# InvalidURL is not an HTTPError; IDNA host errors surface as ValueError.
_REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL, ValueError)


class HttpMediaClient:
    def __init__(self, *, http: httpx.AsyncClient, timeout: float = 10.0) -> None:
        self._http = http
        self._timeout = timeout

    async def download(self, *, url: str) -> bytes:
        try:
            response = await self._http.get(url, timeout=self._timeout, follow_redirects=True)
        except _REQUEST_ERRORS as exc:
            raise UpstreamError("download", type(exc).__name__) from exc
        if not response.is_success:
            raise UpstreamError("download", "unexpected status", status_code=response.status_code)
        return response.content


class HttpRelayClient:
    """Multipart `{key, file}` uploader; the endpoint acknowledges with `{"ok": true}`."""

    def __init__(self, *, http: httpx.AsyncClient, url: str, key: str, timeout: float = 10.0) -> None:
        self._http = http
        self._url = url
        self._key = key
        self._timeout = timeout

    async def upload(self, *, name: str, payload: bytes) -> None:
        try:
            response = await self._http.post(
                self._url,
                data={"key": self._key},
                files={"file": (name, payload, "application/octet-stream")},
                timeout=self._timeout,
            )
        except _REQUEST_ERRORS as exc:
            raise UpstreamError("relay", type(exc).__name__) from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            raise UpstreamError("relay", _relay_error(body, "upload rejected"), status_code=response.status_code)
        if not isinstance(body, dict) or body.get("ok") is not True:
            raise UpstreamError("relay", _relay_error(body, "upload failed"))


def _relay_error(body: object, default: str) -> str:
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return default
