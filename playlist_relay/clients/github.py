from __future__ import annotations

import base64
import logging
from urllib.parse import quote

import httpx

from playlist_relay.domain.errors import ContentAuthenticationError, UpstreamError

GITHUB_API_BASE = "https://api.github.com"
GITHUB_RAW_BASE = "https://raw.githubusercontent.com"
UPSTREAM = "github"
_AUTH_REJECTED = (401, 403)

logger = logging.getLogger("relay.github")


class GitHubContentClient:
    """Contents API client for one repository branch."""

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        token: str,
        repo: str,
        branch: str = "main",
        timeout: float = 5.0,
        api_base: str = GITHUB_API_BASE,
        raw_base: str = GITHUB_RAW_BASE,
    ) -> None:
        self._http = http
        self._repo = repo
        self._branch = branch
        self._timeout = timeout
        self._api_base = api_base
        self._raw_base = raw_base
        self._headers = {
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github+json",
        }

    def public_url(self, *, path: str) -> str:
        return f"{self._raw_base}/{self._repo}/{self._branch}/{_quote_path(path)}"

    async def verify_access(self) -> None:
        response = await self._request("GET", f"{self._api_base}/repos/{self._repo}")
        if response.status_code != 200:
            raise UpstreamError(UPSTREAM, _error_message(response), status_code=response.status_code)

    async def get_sha(self, *, path: str) -> str | None:
        response = await self._request("GET", self._contents_url(path), params={"ref": self._branch})
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise UpstreamError(UPSTREAM, _error_message(response), status_code=response.status_code)
        body = _json_or_none(response)
        sha = body.get("sha") if isinstance(body, dict) else None
        if not isinstance(sha, str) or not sha:
            raise UpstreamError(UPSTREAM, f"no sha in contents response for {path}")
        return sha

    async def read_file(self, *, path: str) -> bytes | None:
        response = await self._request(
            "GET",
            self._contents_url(path),
            params={"ref": self._branch},
            headers={"Accept": "application/vnd.github.raw"},
        )
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise UpstreamError(UPSTREAM, _error_message(response), status_code=response.status_code)
        return response.content

    async def put_file(self, *, path: str, payload: bytes, message: str, sha: str | None) -> str:
        body: dict[str, object] = {
            "message": message,
            "content": base64.b64encode(payload).decode("ascii"),
            "branch": self._branch,
        }
        if sha:
            body["sha"] = sha
        response = await self._request("PUT", self._contents_url(path), json=body)
        if response.status_code not in (200, 201):
            raise UpstreamError(UPSTREAM, _error_message(response), status_code=response.status_code)

        result = _json_or_none(response)
        content = result.get("content") if isinstance(result, dict) else None
        new_sha = content.get("sha") if isinstance(content, dict) else None
        logger.info(
            "contents updated",
            extra={"path": path, "status_code": response.status_code},
        )
        return new_sha if isinstance(new_sha, str) else ""

    def _contents_url(self, path: str) -> str:
        return f"{self._api_base}/repos/{self._repo}/contents/{_quote_path(path)}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, object] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        merged_headers = {**self._headers, **(headers or {})}
        try:
            response = await self._http.request(
                method,
                url,
                params=params,
                json=json,
                headers=merged_headers,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(UPSTREAM, f"{method} contents failed ({type(exc).__name__})") from exc

        if response.status_code in _AUTH_REJECTED:
            raise ContentAuthenticationError(
                f"GitHub rejected the configured token: {_error_message(response)}",
                status_code=response.status_code,
            )
        return response


def _quote_path(path: str) -> str:
    return quote(path.lstrip("/"), safe="/")


def _json_or_none(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(response: httpx.Response) -> str:
    body = _json_or_none(response)
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"unexpected status {response.status_code}"
