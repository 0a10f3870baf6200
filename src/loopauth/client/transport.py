"""Typed classification of :mod:`httpx` transport failures.

httpx reports a peer dropping the connection as a generic
:class:`httpx.ReadError`, :class:`httpx.WriteError` or
:class:`httpx.RemoteProtocolError`, chained (``__cause__``) to the
exception raised further down the stack. :func:`classify_transport_error`
walks that chain once and returns a
:class:`~loopauth.exceptions.TransportError` tagged with an explicit
:class:`~loopauth.exceptions.TransportErrorKind`, so the retry policy never
has to inspect nested exception fields itself.

Only a closed or reset connection counts as
:attr:`~loopauth.exceptions.TransportErrorKind.CONNECTION_RESET`. A
``RemoteProtocolError`` caused by a response the HTTP parser rejected
(malformed status line, bad headers) is
:attr:`~loopauth.exceptions.TransportErrorKind.OTHER`, because repeating the
request against the same backend fails the same way.
"""

from __future__ import annotations

from typing import Optional

import httpcore
import httpx

from loopauth.exceptions import TransportError, TransportErrorKind

_RESET_OS_ERRORS = (ConnectionResetError, BrokenPipeError, ConnectionAbortedError)


def _cause_chain(exc: BaseException) -> list[BaseException]:
    chain: list[BaseException] = []
    current: Optional[BaseException] = exc
    while current is not None and current not in chain:
        chain.append(current)
        current = current.__cause__ or current.__context__
    return chain


def _is_peer_disconnect(chain: list[BaseException]) -> bool:
    """True if httpcore itself raised the protocol error at the root of *chain*.

    httpcore raises its own ``RemoteProtocolError`` when the server closes the
    socket before sending a response. Parser failures are re-raised from the
    h11/h2 exception instead, so the root of their chain is not an httpcore
    exception.
    """
    return isinstance(chain[-1], httpcore.RemoteProtocolError)


def is_connection_reset(exc: httpx.TransportError) -> bool:
    """Return True if *exc* means the peer dropped an established connection."""
    if not isinstance(exc, (httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError)):
        return False
    chain = _cause_chain(exc)
    if any(isinstance(e, _RESET_OS_ERRORS) for e in chain):
        return True
    if isinstance(exc, httpx.RemoteProtocolError):
        # Keep-alive connection closed by the load balancer mid-request.
        return _is_peer_disconnect(chain)
    return False


def classify_transport_error(exc: httpx.TransportError) -> TransportError:
    """Wrap an httpx transport failure in a tagged :class:`TransportError`."""
    if is_connection_reset(exc):
        kind = TransportErrorKind.CONNECTION_RESET
    else:
        kind = TransportErrorKind.OTHER
    return TransportError(f"{type(exc).__name__}: {exc}", kind=kind, cause=exc)
