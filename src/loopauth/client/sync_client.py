"""Synchronous API client with auth headers, status interpretation, and retry.

This module provides :class:`Client`, the blocking client handed to callers
by :func:`~loopauth.client.create_client`. It wraps :class:`httpx.Client`
and layers on:

- **Auth injection** -- ``Authorization: {token_type} {access_token}`` plus
  JSON ``Accept`` / ``Content-Type`` on every request, overridable per call.
- **Status interpretation** -- ``200`` / ``201`` / ``204`` map to the three
  success shapes described in :mod:`loopauth.client.response`.
- **Unbounded retry** -- connection resets, ``429`` and ``502`` are retried
  forever via :class:`~loopauth.client.retry.RetryPolicy`; any other failure
  is raised immediately.

See Also:
    :class:`~loopauth.client.async_client.AsyncClient` for the
    equivalent non-blocking implementation.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import httpx

from loopauth.client.retry import Action, RetryPolicy
from loopauth.client.transport import classify_transport_error
from loopauth.exceptions import TransportError
from loopauth.models import ClientConfig, RequestSpec
from loopauth.output import retrying
from loopauth.wait import wait

DEFAULT_TIMEOUT = 30.0


def default_headers(config: ClientConfig) -> dict[str, str]:
    """Headers sent with every call before caller overrides are applied."""
    return {
        "Authorization": config.authorization,
        "Accept": "application/json",
        "Content-Type": "application/json",
    }


def build_request(
    client: httpx.Client | httpx.AsyncClient,
    config: ClientConfig,
    spec: RequestSpec,
) -> httpx.Request:
    """Build the outbound request for *spec* against *config*'s base URL."""
    headers = httpx.Headers(default_headers(config))
    headers.update(spec.headers)
    kwargs: dict[str, Any] = {
        "method": spec.method,
        "url": f"{config.base_url}{spec.path}",
        "headers": headers,
    }
    if spec.query:
        kwargs["params"] = spec.query
    if spec.body is not None:
        kwargs["json"] = spec.body
    return client.build_request(**kwargs)


class Client:
    """Blocking client for one provider's API.

    Holds no mutable state besides its connection pool, so :meth:`call` may
    be invoked from several threads at once.

    Args:
        config: Base URL and token used for every call.
        policy: Retry policy; the default retries resets, ``429`` and ``502``.
        sleep: Called with a delay in milliseconds before each reattempt.
        transport: Optional httpx transport (tests pass
            :class:`httpx.MockTransport`).
        timeout: Per-request timeout in seconds.

    Example::

        with create_client(ClientConfig.from_token(base_url, token)) as client:
            track = client.call(RequestSpec(path="/v1/search", query={"q": "x"}))
    """

    def __init__(
        self,
        config: ClientConfig,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[int], None] = wait,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._config = config
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._client = httpx.Client(transport=transport, timeout=timeout)

    @property
    def config(self) -> ClientConfig:
        return self._config

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def call(self, spec: RequestSpec) -> Any:
        """Issue *spec* and return its result, retrying transient failures.

        Returns:
            The parsed JSON body, ``None`` for ``201`` / ``204``, or
            :data:`~loopauth.client.response.ABSENT` for an empty ``200``.

        Raises:
            APIError: On any status other than 200, 201, 204, 429 and 502.
            TransportError: On transport failures other than connection resets.
        """
        request = build_request(self._client, self._config, spec)
        while True:
            try:
                response = self._client.send(request)
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
            self._sleep(decision.delay_ms)
