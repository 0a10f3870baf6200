"""Retry predicate and backoff strategy, kept free of network I/O.

The clients retry forever on connection resets, HTTP ``429`` and HTTP ``502``.
Callers needing a bound must wrap the client themselves.

:class:`RetryPolicy` turns one attempt's outcome into a :class:`Decision`:
return a value, retry after a delay, or fail. Both clients run the same
loop around it and only differ in how they sleep::

    while True:
        decision = policy.on_response(response)
        if decision.action is Action.RETRY:
            sleep(decision.delay_ms)
            continue
        ...
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from loopauth.client.response import read_ok_body
from loopauth.exceptions import APIError, LoopauthError, TransportError


class Action(enum.Enum):
    RETURN = "return"
    RETRY = "retry"
    FAIL = "fail"


@dataclass(frozen=True)
class Decision:
    """Outcome of one attempt as judged by :class:`RetryPolicy`."""

    action: Action
    value: Any = None
    delay_ms: int = 0
    error: Optional[LoopauthError] = None
    reason: str = ""

    @classmethod
    def give(cls, value: Any) -> Decision:
        return cls(Action.RETURN, value=value)

    @classmethod
    def retry(cls, delay_ms: int, reason: str) -> Decision:
        return cls(Action.RETRY, delay_ms=delay_ms, reason=reason)

    @classmethod
    def fail(cls, error: LoopauthError) -> Decision:
        return cls(Action.FAIL, error=error)


def parse_retry_after(value: Optional[str], default: int = 1) -> int:
    """Parse a ``Retry-After`` header given in whole seconds.

    Missing, unparsable, zero or negative values yield *default*.
    """
    if value is None:
        return default
    try:
        seconds = int(value.strip())
    except ValueError:
        return default
    return seconds if seconds > 0 else default


@dataclass(frozen=True)
class RetryPolicy:
    """Status-code and transport-error interpretation for API calls.

    Every reattempt is preceded by ``transient_delay_ms``; a ``429`` adds the
    server's ``Retry-After`` on top of it.

    Args:
        transient_delay_ms: Fixed delay before any reattempt.
        default_retry_after: Seconds to assume when a ``429`` carries no
            usable ``Retry-After`` header.
    """

    transient_delay_ms: int = 1000
    default_retry_after: int = 1

    def on_response(self, response: httpx.Response) -> Decision:
        status = response.status_code
        if status == 200:
            try:
                return Decision.give(read_ok_body(response))
            except APIError as exc:
                return Decision.fail(exc)
        if status in (201, 204):
            return Decision.give(None)
        if status == 429:
            retry_after = parse_retry_after(
                response.headers.get("retry-after"), self.default_retry_after
            )
            return Decision.retry(
                retry_after * 1000 + self.transient_delay_ms,
                f"rate limited (Retry-After: {retry_after}s)",
            )
        if status == 502:
            return Decision.retry(self.transient_delay_ms, "bad gateway (502)")
        return Decision.fail(APIError(status, response.text))

    def on_transport_error(self, error: TransportError) -> Decision:
        if error.is_connection_reset:
            return Decision.retry(self.transient_delay_ms, "connection reset")
        return Decision.fail(error)
