"""Resilient API client module for loopauth.

Provides synchronous and asynchronous clients that wrap :mod:`httpx` with
authorization headers, status-code interpretation, and unbounded retry on
connection resets, ``429`` and ``502``.

Classes:
    :class:`Client` -- blocking client backed by :class:`httpx.Client`.
    :class:`AsyncClient` -- non-blocking client backed by :class:`httpx.AsyncClient`.

A client takes a :class:`~loopauth.models.ClientConfig` (base URL plus
token), never the authenticator itself, so the two halves compose freely.

Example::

    from loopauth.client import create_client

    with create_client(ClientConfig.from_token(base_url, token)) as client:
        result = client.call(RequestSpec(path="/v1/me"))
"""

from typing import Any

from loopauth.client.async_client import AsyncClient
from loopauth.client.response import ABSENT
from loopauth.client.retry import RetryPolicy
from loopauth.client.sync_client import Client
from loopauth.models import ClientConfig


def create_client(config: ClientConfig, **kwargs: Any) -> Client:
    """Build a blocking :class:`Client`; keyword arguments are forwarded."""
    return Client(config, **kwargs)


def create_async_client(config: ClientConfig, **kwargs: Any) -> AsyncClient:
    """Build an :class:`AsyncClient`; keyword arguments are forwarded."""
    return AsyncClient(config, **kwargs)


__all__ = [
    "ABSENT",
    "AsyncClient",
    "Client",
    "RetryPolicy",
    "create_async_client",
    "create_client",
]
