"""Exception hierarchy for the Myfox wrapper API."""

from __future__ import annotations

from .const import (
    STATUS_FORBIDDEN,
    STATUS_FORBIDDEN_SITE,
    STATUS_INTERNAL,
    STATUS_UNAUTHORIZED,
)


class MyfoxError(Exception):
    """Base error carrying an HTTP-like status."""

    default_status: int = STATUS_INTERNAL

    def __init__(self, message: str, *, status: int | None = None) -> None:
        """Store the message and the status (class default when omitted)."""

        super().__init__(message)
        self.status = status if status is not None else self.default_status


class AuthenticationError(MyfoxError):
    """Authentication with the portal failed after every retry."""

    default_status = STATUS_FORBIDDEN


class ForbiddenSiteError(MyfoxError):
    """Authenticated site id is not one of the allowed site ids."""

    default_status = STATUS_FORBIDDEN_SITE


class RemoteCallError(MyfoxError):
    """A remote operation failed (network, HTTP status or portal refusal)."""


class ParseError(MyfoxError):
    """A portal response could not be parsed."""


class AlarmPasswordError(MyfoxError):
    """The alarm password given does not match the account password."""

    default_status = STATUS_UNAUTHORIZED


class UnsupportedOperationError(NotImplementedError):
    """No configured wrapper variant implements the requested operation."""


class InvalidActionError(ValueError):
    """An action definition does not match its schema."""


class InvalidOptionsError(ValueError):
    """Wrapper options or account credentials are invalid."""


__all__ = [
    "AlarmPasswordError",
    "AuthenticationError",
    "ForbiddenSiteError",
    "InvalidActionError",
    "InvalidOptionsError",
    "MyfoxError",
    "ParseError",
    "RemoteCallError",
    "UnsupportedOperationError",
]
