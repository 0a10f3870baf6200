"""OAuth2 Authorization Code flow over a loopback redirect.

This module provides :class:`LoopbackAuthenticator`, which obtains a
user-delegated token without a public callback endpoint:

1. Binds a temporary HTTP listener on ``127.0.0.1:{local_port}`` exposing
   ``login_path`` and ``callback_path``.
2. Opens the browser at the login route, which redirects to the provider's
   authorization URL with ``redirect_uri`` pointing back at the listener.
3. On the callback, exchanges the ``code`` at the token endpoint using HTTP
   Basic client authentication.
4. Shuts the listener down and returns the parsed
   :class:`~loopauth.models.TokenResponse`.

Each run is scoped to one :class:`AuthenticatorSession`, which owns the
listener and a :class:`OneShot` completion slot. Only the first callback
carrying a code (or a provider error) claims the slot, so browser prefetches
and repeated hits never trigger a second exchange.
"""

from __future__ import annotations

import asyncio
import base64
import concurrent.futures
import threading
import webbrowser
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Optional
from urllib.parse import parse_qs, quote, urlencode, urlparse

import httpx
from pydantic import ValidationError

from loopauth.exceptions import AuthError, AuthErrorReason
from loopauth.models import LOOPBACK_HOST, AuthConfig, TokenResponse
from loopauth.output import debug, info

DEFAULT_HTTP_TIMEOUT = 30.0


def build_authorize_url(config: AuthConfig, redirect_uri: str) -> str:
    """Return the provider URL the login route redirects the browser to."""
    params = {
        "response_type": "code",
        "client_id": config.client_id,
        "scope": " ".join(config.scopes),
        "redirect_uri": redirect_uri,
    }
    return f"{config.authorize_url}?{urlencode(params, quote_via=quote)}"


def basic_auth_header(client_id: str, client_secret: str) -> str:
    credentials = f"{client_id}:{client_secret}".encode("utf-8")
    return f"Basic {base64.b64encode(credentials).decode('ascii')}"


def exchange_code(
    http_client: httpx.Client,
    config: AuthConfig,
    code: str,
    redirect_uri: str,
) -> TokenResponse:
    """Exchange an authorization code for tokens at ``config.token_url``.

    Args:
        http_client: Client used for the POST.
        config: Provides the token URL and client credentials.
        code: The authorization code received on the callback route.
        redirect_uri: Must equal the one sent in the authorization request.

    Returns:
        The parsed token response.

    Raises:
        AuthError: ``token_exchange_failed`` if the endpoint is unreachable
            or answers with a non-2xx status; ``malformed_token_response`` if
            the body is not JSON or lacks ``access_token`` / ``token_type``.
    """
    try:
        response = http_client.post(
            config.token_url,
            headers={
                "Authorization": basic_auth_header(config.client_id, config.client_secret),
                "Accept": "application/json",
            },
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
            },
        )
    except httpx.HTTPError as exc:
        raise AuthError(
            f"Token exchange failed: {exc}",
            reason=AuthErrorReason.TOKEN_EXCHANGE_FAILED,
        ) from exc

    if not response.is_success:
        raise AuthError(
            f"Token exchange failed with status {response.status_code}: {response.text}",
            reason=AuthErrorReason.TOKEN_EXCHANGE_FAILED,
            status=response.status_code,
            body=response.text,
        )

    try:
        return TokenResponse.model_validate(response.json())
    except ValidationError as exc:
        raise AuthError(
            f"Token response is missing required fields: {exc.error_count()} error(s)",
            reason=AuthErrorReason.MALFORMED_TOKEN_RESPONSE,
            status=response.status_code,
            body=response.text,
        ) from exc
    except ValueError as exc:
        raise AuthError(
            "Token response is not valid JSON",
            reason=AuthErrorReason.MALFORMED_TOKEN_RESPONSE,
            status=response.status_code,
            body=response.text,
        ) from exc


class OneShot:
    """Single-write completion slot shared by the listener and the waiting flow.

    A writer must win :meth:`claim` before calling :meth:`resolve` or
    :meth:`fail`; every later claim returns ``False``.
    """

    def __init__(self) -> None:
        self._future: concurrent.futures.Future[TokenResponse] = concurrent.futures.Future()
        self._lock = threading.Lock()
        self._claimed = False

    @property
    def future(self) -> concurrent.futures.Future[TokenResponse]:
        return self._future

    @property
    def claimed(self) -> bool:
        return self._claimed

    def claim(self) -> bool:
        with self._lock:
            if self._claimed:
                return False
            self._claimed = True
            return True

    def resolve(self, token: TokenResponse) -> None:
        # The waiter may have cancelled the future (async timeout) already.
        try:
            self._future.set_result(token)
        except concurrent.futures.InvalidStateError:
            debug("Authorization completed after the waiter gave up")

    def fail(self, exc: BaseException) -> None:
        try:
            self._future.set_exception(exc)
        except concurrent.futures.InvalidStateError:
            debug("Authorization failed after the waiter gave up")


class AuthenticatorSession:
    """Listener and completion state for exactly one authentication run.

    Use as a context manager: entering binds the listener and starts serving
    on a daemon thread, exiting shuts it down and releases the port on every
    path (success, failure, or interruption).

    Args:
        config: The provider's authorization-code settings. A ``local_port``
            of ``0`` binds an ephemeral port; :attr:`redirect_uri` and
            :attr:`login_url` always reflect the port actually bound.
        transport: Optional httpx transport for the token exchange.
        http_timeout: Timeout in seconds for the token exchange request.
    """

    def __init__(
        self,
        config: AuthConfig,
        transport: Optional[httpx.BaseTransport] = None,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self.config = config
        self.completion = OneShot()
        self._transport = transport
        self._http_timeout = http_timeout
        self._http_client: Optional[httpx.Client] = None
        self._server: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def __enter__(self) -> AuthenticatorSession:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def start(self) -> None:
        """Bind the listener and start serving requests in the background.

        Raises:
            AuthError: ``bind_failed`` if the port cannot be bound.
        """
        try:
            server = ThreadingHTTPServer(
                (LOOPBACK_HOST, self.config.local_port), self._make_handler()
            )
        except OSError as exc:
            raise AuthError(
                f"Cannot listen on {LOOPBACK_HOST}:{self.config.local_port}: {exc}",
                reason=AuthErrorReason.BIND_FAILED,
            ) from exc
        server.daemon_threads = True
        self._server = server
        self._http_client = httpx.Client(
            transport=self._transport, timeout=self._http_timeout
        )
        self._thread = threading.Thread(
            target=server.serve_forever, name="loopauth-listener", daemon=True
        )
        self._thread.start()
        debug(f"Listening on {LOOPBACK_HOST}:{self.port}")

    def close(self) -> None:
        """Stop serving and release the bound port. Safe to call twice."""
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    @property
    def is_listening(self) -> bool:
        return self._server is not None

    @property
    def port(self) -> int:
        if self._server is None:
            return self.config.local_port
        return self._server.server_address[1]

    @property
    def redirect_uri(self) -> str:
        return f"http://{LOOPBACK_HOST}:{self.port}{self.config.callback_path}"

    @property
    def login_url(self) -> str:
        return f"http://{LOOPBACK_HOST}:{self.port}{self.config.login_path}"

    # ------------------------------------------------------------------ #
    # Waiting
    # ------------------------------------------------------------------ #

    def wait_for_token(self, timeout: Optional[float] = None) -> TokenResponse:
        """Block the calling thread until the callback completes the flow.

        Raises:
            AuthError: ``timeout`` if *timeout* seconds pass first, or
                whatever error the callback route failed the flow with.
        """
        try:
            return self.completion.future.result(timeout)
        except concurrent.futures.TimeoutError as exc:
            raise AuthError(
                f"No authorization callback received within {timeout} seconds",
                reason=AuthErrorReason.TIMEOUT,
            ) from exc

    async def wait_for_token_async(self, timeout: Optional[float] = None) -> TokenResponse:
        """Suspend the calling task until the callback completes the flow."""
        try:
            return await asyncio.wait_for(
                asyncio.wrap_future(self.completion.future), timeout
            )
        except asyncio.TimeoutError as exc:
            raise AuthError(
                f"No authorization callback received within {timeout} seconds",
                reason=AuthErrorReason.TIMEOUT,
            ) from exc

    # ------------------------------------------------------------------ #
    # Routes
    # ------------------------------------------------------------------ #

    def handle_callback(self, params: dict[str, list[str]]) -> tuple[int, str]:
        """Process one hit on the callback route; return the page to send back.

        The page is only sent after the flow has been resolved or failed, so
        callers must send it even when resolution raised.
        """
        error = params.get("error", [None])[0]
        code = params.get("code", [None])[0]

        if not error and not code:
            return 400, "No authorization code received."

        if not self.completion.claim():
            debug("Ignoring repeated authorization callback")
            return 200, "Authentication already completed. You can close this window."

        if error:
            description = params.get("error_description", [""])[0]
            message = f"Authorization failed: {error}"
            if description:
                message += f" - {description}"
            self.completion.fail(
                AuthError(message, reason=AuthErrorReason.AUTHORIZATION_DENIED)
            )
            return 200, message

        assert self._http_client is not None and code is not None
        try:
            token = exchange_code(self._http_client, self.config, code, self.redirect_uri)
        except Exception as exc:
            self.completion.fail(exc)
            return 502, f"Token exchange failed: {exc}"

        debug("Token exchange succeeded")
        self.completion.resolve(token)
        return 200, "Authentication complete. You can close this window and return to the terminal."

    def _make_handler(self) -> type[BaseHTTPRequestHandler]:
        session = self

        class LoopbackHandler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:
                parsed = urlparse(self.path)
                if parsed.path == session.config.login_path:
                    self.send_response(302)
                    self.send_header(
                        "Location",
                        build_authorize_url(session.config, session.redirect_uri),
                    )
                    self.send_header("Content-Length", "0")
                    self.end_headers()
                elif parsed.path == session.config.callback_path:
                    status, message = session.handle_callback(parse_qs(parsed.query))
                    self._send_page(status, message)
                else:
                    self._send_page(404, "Not found.")

            def _send_page(self, status: int, message: str) -> None:
                body = f"<html><body><h2>{message}</h2></body></html>".encode("utf-8")
                self.send_response(status)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def log_message(self, format: str, *args: Any) -> None:
                # Suppress default logging
                pass

        return LoopbackHandler


class LoopbackAuthenticator:
    """Run the authorization-code grant through the user's browser.

    Args:
        open_browser: Called with the local login URL once the listener is
            bound. Defaults to :func:`webbrowser.open`; it runs on a daemon
            thread so a slow browser launch never blocks the flow.
        transport: Optional httpx transport for the token exchange.
        http_timeout: Timeout in seconds for the token exchange request.

    Example::

        token = LoopbackAuthenticator().authenticate(auth_config)
        client = create_client(ClientConfig.from_token(base_url, token))
    """

    def __init__(
        self,
        open_browser: Callable[[str], Any] = webbrowser.open,
        transport: Optional[httpx.BaseTransport] = None,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self._open_browser = open_browser
        self._transport = transport
        self._http_timeout = http_timeout

    def session(self, config: AuthConfig) -> AuthenticatorSession:
        return AuthenticatorSession(
            config, transport=self._transport, http_timeout=self._http_timeout
        )

    def authenticate(self, config: AuthConfig, timeout: Optional[float] = None) -> TokenResponse:
        """Block until the user completes the browser flow.

        Args:
            config: The provider's authorization-code settings.
            timeout: Seconds to wait for the callback. ``None`` waits
                indefinitely.

        Raises:
            AuthError: ``bind_failed``, ``token_exchange_failed``,
                ``malformed_token_response``, ``authorization_denied``,
                ``timeout``, or ``interrupted`` (Ctrl-C while waiting).
        """
        with self.session(config) as session:
            self._launch_browser(session.login_url)
            try:
                return session.wait_for_token(timeout)
            except KeyboardInterrupt as exc:
                raise AuthError(
                    "Authentication interrupted", reason=AuthErrorReason.INTERRUPTED
                ) from exc

    async def authenticate_async(
        self, config: AuthConfig, timeout: Optional[float] = None
    ) -> TokenResponse:
        """Like :meth:`authenticate`, but suspends instead of blocking the event loop."""
        with self.session(config) as session:
            self._launch_browser(session.login_url)
            try:
                return await session.wait_for_token_async(timeout)
            except KeyboardInterrupt as exc:
                raise AuthError(
                    "Authentication interrupted", reason=AuthErrorReason.INTERRUPTED
                ) from exc

    def _launch_browser(self, url: str) -> None:
        info(f"Opening {url} in your browser...")
        thread = threading.Thread(target=self._open_browser, args=(url,), daemon=True)
        thread.start()


def authenticate(config: AuthConfig, timeout: Optional[float] = None) -> TokenResponse:
    """Run one loopback flow with the default browser opener."""
    return LoopbackAuthenticator().authenticate(config, timeout=timeout)
