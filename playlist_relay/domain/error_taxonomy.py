from __future__ import annotations

from typing import Literal

from playlist_relay.domain.errors import (
    AuthorizationError,
    ConfigurationError,
    RelayError,
    UpstreamError,
    ValidationError,
)
from playlist_relay.domain.messages import NOT_ALLOWED

# Canonical error vocabulary shared by logs and requester notices.
ErrorCode = Literal[
    "unauthorized",
    "validation_error",
    "upstream_failed",
    "configuration_error",
    "internal_error",
]

ErrorClassification = Literal["fatal", "non_fatal"]

CANONICAL_ERROR_CODES: tuple[ErrorCode, ...] = (
    "unauthorized",
    "validation_error",
    "upstream_failed",
    "configuration_error",
    "internal_error",
)

# Errors that must halt startup instead of running half-configured.
FATAL_ERROR_CODES: frozenset[ErrorCode] = frozenset({"configuration_error"})

_NOTICE_PREFIX: dict[ErrorCode, str] = {
    "unauthorized": NOT_ALLOWED,
    "validation_error": "❌",
    "upstream_failed": "❌ Error:",
    "configuration_error": "⛔ Configuration error:",
    "internal_error": "❌ Internal error.",
}


def is_canonical_error_code(code: str) -> bool:
    return code in CANONICAL_ERROR_CODES


def classify_error(code: ErrorCode) -> ErrorClassification:
    if code in FATAL_ERROR_CODES:
        return "fatal"
    return "non_fatal"


def error_code_for(exc: BaseException) -> ErrorCode:
    if isinstance(exc, AuthorizationError):
        return "unauthorized"
    if isinstance(exc, ValidationError):
        return "validation_error"
    if isinstance(exc, UpstreamError):
        return "upstream_failed"
    if isinstance(exc, ConfigurationError):
        return "configuration_error"
    if isinstance(exc, RelayError) and is_canonical_error_code(exc.code):
        return exc.code  # type: ignore[return-value]
    return "internal_error"


def requester_notice(exc: BaseException) -> str:
    """Short human-readable reason sent back to the requester."""
    code = error_code_for(exc)
    prefix = _NOTICE_PREFIX[code]
    if code in ("unauthorized", "internal_error"):
        return prefix
    return f"{prefix} {exc}"
