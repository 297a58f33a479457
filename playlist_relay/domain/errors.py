from __future__ import annotations


class RelayError(Exception):
    code = "internal_error"


class AuthorizationError(RelayError):
    code = "unauthorized"


class ValidationError(RelayError):
    code = "validation_error"


class UpdateValidationError(ValidationError):
    """Inbound update could not be parsed into a known shape."""


class UnsupportedFileError(ValidationError):
    pass


class UpstreamError(RelayError):
    code = "upstream_failed"

    def __init__(self, upstream: str, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.upstream = upstream
        self.status_code = status_code

    def __str__(self) -> str:
        detail = super().__str__()
        if self.status_code is None:
            return f"{self.upstream}: {detail}"
        return f"{self.upstream} {self.status_code}: {detail}"


class ConfigurationError(RelayError):
    code = "configuration_error"


class ContentAuthenticationError(ConfigurationError):
    """Contents API rejected the configured credentials (401/403)."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code
