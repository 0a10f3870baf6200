"""Exception hierarchy for loopauth.

All exceptions inherit from :class:`LoopauthError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`loopauth.exit_codes`.
The top-level error handler in :func:`loopauth.app.main` catches
``LoopauthError`` and exits with the appropriate code.

Retryable conditions (connection resets, HTTP 429, HTTP 502) never surface
as exceptions from :meth:`~loopauth.client.Client.call`; they are absorbed
by the client's retry loop. Everything raised here is fatal to the caller.

Subclass hierarchy::

    LoopauthError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- APIError            (exit 5)
    +-- TransportError      (exit 6)
    +-- WaitCancelled       (exit 130)
    +-- ConfigError         (exit 1)
"""

from __future__ import annotations

import enum
from typing import Optional

from loopauth.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_INVALID_USAGE,
)


class LoopauthError(Exception):
    """Base exception for all loopauth errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`loopauth.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(LoopauthError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthErrorReason(str, enum.Enum):
    """Why a loopback authentication run failed."""

    BIND_FAILED = "bind_failed"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
    MALFORMED_TOKEN_RESPONSE = "malformed_token_response"
    AUTHORIZATION_DENIED = "authorization_denied"
    INTERRUPTED = "interrupted"
    TIMEOUT = "timeout"


class AuthError(LoopauthError):
    """Raised when the loopback authorization flow cannot produce a token.

    Args:
        message: Human-readable error description.
        reason: The failure category.
        status: HTTP status of the token endpoint, when it answered.
        body: Raw response body of the token endpoint, when it answered.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(
        self,
        message: str,
        reason: AuthErrorReason,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.status = status
        self.body = body


class APIError(LoopauthError):
    """Raised when the API answers with a status code that is not retried.

    Args:
        status_code: The HTTP status code of the response.
        body: The raw response body, kept for diagnostics.
    """

    exit_code = EXIT_API_ERROR

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Invalid status code {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class TransportErrorKind(str, enum.Enum):
    """Transport failure variants the client distinguishes."""

    CONNECTION_RESET = "connection_reset"
    OTHER = "other"


class TransportError(LoopauthError):
    """Raised on network-level failures below HTTP.

    Only the :attr:`TransportErrorKind.CONNECTION_RESET` variant is retried by
    the client; any other kind surfaces to the caller unchanged.

    Args:
        message: Human-readable error description.
        kind: Which variant of transport failure occurred.
        cause: The underlying :mod:`httpx` exception.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(
        self,
        message: str,
        kind: TransportErrorKind,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.cause = cause

    @property
    def is_connection_reset(self) -> bool:
        return self.kind is TransportErrorKind.CONNECTION_RESET


class WaitCancelled(LoopauthError):
    """Raised when a wait is interrupted by its stop event before it elapsed."""

    exit_code = EXIT_INTERRUPTED


class ConfigError(LoopauthError):
    """Raised for configuration problems (missing providers, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE
