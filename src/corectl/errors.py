"""corectl error types."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from corectl.schemas import ErrorResponse


class CorectlError(RuntimeError):
    """Base corectl error."""


class UsageError(CorectlError):
    """Command arguments have the wrong count or shape."""


class UnknownGuardTypeError(UsageError):
    """Guard token prefix is not one of token=, CN= or OU=."""

    def __init__(self, prefix: str) -> None:
        super().__init__(f"unknown guard type {prefix}")
        self.prefix = prefix


class ConfigError(ValueError):
    """Local configuration or TLS material is invalid."""


class TransportError(CorectlError):
    """Core could not be reached."""


class RemoteStatusError(TransportError):
    """Core answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        error_data: ErrorResponse | None = None,
        body: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_data = error_data
        self.body = body


class ResponseDecodeError(TransportError):
    """Core answered 2xx with a body that is not valid JSON."""


class PollTimeoutError(CorectlError):
    """Liveness polling gave up before the core answered."""
