from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from playlist_relay.domain.errors import ConfigurationError
from playlist_relay.domain.log_buffer import DEFAULT_CAPACITY
from playlist_relay.domain.playlist import DEFAULT_MEDIA_MARKERS, DEFAULT_TRUSTED_HOSTS

REQUIRED_ENV_VARS = ("BOT_TOKEN", "GITHUB_TOKEN", "GITHUB_REPO", "MY_ID")
OPTIONAL_ENV_VARS = ("UPLOAD_URL", "UPLOAD_KEY", "WEBHOOK_URL")


@dataclass(frozen=True)
class RelaySettings:
    bot_token: str
    github_token: str
    github_repo: str
    allowed_user_ids: frozenset[str]
    github_branch: str = "main"
    playlist_path: str = "1.m3u"
    playlist_extension: str = ".m3u"
    upload_url: str | None = None
    upload_key: str = ""
    media_markers: tuple[str, ...] = DEFAULT_MEDIA_MARKERS
    trusted_hosts: tuple[str, ...] = DEFAULT_TRUSTED_HOSTS
    webhook_url: str | None = None
    api_timeout_seconds: int = 5
    transfer_timeout_seconds: int = 10
    log_buffer_capacity: int = DEFAULT_CAPACITY
    verify_credentials_on_startup: bool = False

    @property
    def relay_enabled(self) -> bool:
        return bool(self.upload_url)

    def is_allowed(self, requester: str | None) -> bool:
        return requester is not None and requester in self.allowed_user_ids


def relay_settings_from_env(environ: Mapping[str, str] | None = None) -> RelaySettings:
    env = os.environ if environ is None else environ

    missing = [name for name in REQUIRED_ENV_VARS if not env.get(name, "").strip()]
    if missing:
        raise ConfigurationError(f"missing required settings: {', '.join(missing)}")

    github_repo = env["GITHUB_REPO"].strip()
    owner, _, name = github_repo.partition("/")
    if not owner or not name or "/" in name:
        raise ConfigurationError(f"GITHUB_REPO must look like 'owner/name', got '{github_repo}'")

    allowed_user_ids = parse_allow_list(env["MY_ID"])
    if not allowed_user_ids:
        raise ConfigurationError("MY_ID must list at least one user id")

    return RelaySettings(
        bot_token=env["BOT_TOKEN"].strip(),
        github_token=env["GITHUB_TOKEN"].strip(),
        github_repo=github_repo,
        allowed_user_ids=allowed_user_ids,
        github_branch=_env_str(env, "GITHUB_BRANCH", "main"),
        playlist_path=_env_str(env, "PLAYLIST_PATH", "1.m3u").lstrip("/"),
        playlist_extension=_env_str(env, "PLAYLIST_EXTENSION", ".m3u").lower(),
        upload_url=_env_str(env, "UPLOAD_URL", "") or None,
        upload_key=env.get("UPLOAD_KEY", ""),
        media_markers=_env_list(env, "MEDIA_EXTENSIONS", DEFAULT_MEDIA_MARKERS),
        trusted_hosts=_env_list(env, "TRUSTED_HOSTS", DEFAULT_TRUSTED_HOSTS),
        webhook_url=_env_str(env, "WEBHOOK_URL", "") or None,
        api_timeout_seconds=_env_int(env, "API_TIMEOUT_SECONDS", 5),
        transfer_timeout_seconds=_env_int(env, "TRANSFER_TIMEOUT_SECONDS", 10),
        log_buffer_capacity=_env_int(env, "LOG_BUFFER_CAPACITY", DEFAULT_CAPACITY),
        verify_credentials_on_startup=_env_bool(env, "VERIFY_CREDENTIALS_ON_STARTUP", False),
    )


def parse_allow_list(value: str) -> frozenset[str]:
    return frozenset(part.strip() for part in value.split(",") if part.strip())


def missing_env_vars(environ: Mapping[str, str] | None = None) -> list[str]:
    env = os.environ if environ is None else environ
    names = REQUIRED_ENV_VARS + OPTIONAL_ENV_VARS
    return [name for name in names if not env.get(name, "").strip()]


def _env_str(env: Mapping[str, str], name: str, default: str) -> str:
    value = env.get(name, "").strip()
    return value or default


def _env_list(env: Mapping[str, str], name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = env.get(name)
    if value is None:
        return default
    parsed = tuple(part.strip() for part in value.split(",") if part.strip())
    return parsed or default


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if value is None:
        return default

    try:
        parsed = int(value)
    except ValueError:
        return default

    return parsed if parsed > 0 else default


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}
