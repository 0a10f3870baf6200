"""Asynchronous API client -- mirrors :class:`~loopauth.client.sync_client.Client`.

:class:`AsyncClient` wraps :class:`httpx.AsyncClient` and applies the same
headers and :class:`~loopauth.client.retry.RetryPolicy`, but suspends on
:func:`~loopauth.wait.async_wait` between attempts so a long backoff never
blocks the event loop. Cancelling the calling task aborts the pending wait.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

import httpx

from loopauth.client.retry import Action, RetryPolicy
from loopauth.client.sync_client import DEFAULT_TIMEOUT, build_request
from loopauth.client.transport import classify_transport_error
from loopauth.exceptions import TransportError
from loopauth.models import ClientConfig, RequestSpec
from loopauth.output import retrying
from loopauth.wait import async_wait


class AsyncClient:
    """Non-blocking client for one provider's API.

    Independent :meth:`call` coroutines may run concurrently (e.g. under
    :func:`asyncio.gather`); they share only the immutable config and the
    connection pool.

    Example::

        async with create_async_client(config) as client:
            result = await client.call(RequestSpec(method="PUT", path="/v1/me/tracks"))
    """

    def __init__(
        self,
        config: ClientConfig,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[int], Awaitable[None]] = async_wait,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._config = config
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._client = httpx.AsyncClient(transport=transport, timeout=timeout)

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def __aenter__(self) -> AsyncClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def call(self, spec: RequestSpec) -> Any:
        """Async equivalent of :meth:`loopauth.client.Client.call`."""
        request = build_request(self._client, self._config, spec)
        while True:
            try:
                response = await self._client.send(request)
            except httpx.TransportError as exc:
                decision = self._policy.on_transport_error(classify_transport_error(exc))
            else:
                decision = self._policy.on_response(response)

            if decision.action is Action.RETURN:
                return decision.value
            if decision.action is Action.FAIL:
                assert decision.error is not None
                if isinstance(decision.error, TransportError):
                    raise decision.error from decision.error.cause
                raise decision.error

            retrying(spec.method, spec.path, decision.reason, decision.delay_ms)
            await self._sleep(decision.delay_ms)
