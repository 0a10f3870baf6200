"""Typer application and CLI entry point for loopauth.

A thin orchestrator over the two core components: it loads a provider
profile, runs the loopback login, and optionally issues one API call with
the resulting token. Tokens live only for the duration of the process.

Commands::

    loopauth providers list                   # list configured providers
    loopauth providers add spotify --base-url ... --client-id ...
    loopauth -p spotify login                 # print a fresh token response
    loopauth -p spotify call /v1/me           # log in, then GET /v1/me
    loopauth -p spotify call /v1/me/tracks -X PUT -Q ids=abc

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import json
import signal
import sys
from typing import Any, Optional

import typer

from loopauth import __version__
from loopauth.auth import LoopbackAuthenticator
from loopauth.client import ABSENT, create_client
from loopauth.commands.providers import providers_app
from loopauth.config import (
    build_auth_config,
    build_client_config,
    load_provider,
    resolve_provider_name,
)
from loopauth.exceptions import InvalidUsageError, LoopauthError
from loopauth.exit_codes import EXIT_INTERRUPTED
from loopauth.models import ProviderProfile, RequestSpec, TokenResponse
from loopauth.output import error, format_response, info, success


app = typer.Typer(
    name="loopauth",
    help="OAuth2 loopback login and resilient API calls.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
app.add_typer(providers_app, name="providers", help="Manage provider profiles.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"loopauth {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p", help="Provider name (default: $LOOPAUTH_PROVIDER)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Install the global output manager and stash shared options in ``ctx.obj``."""
    from loopauth.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["provider"] = provider


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _parse_pairs(values: list[str], separator: str, what: str) -> dict[str, Any]:
    """Parse ``key<sep>value`` options; repeated keys collect into a list."""
    result: dict[str, Any] = {}
    for item in values:
        key, sep, value = item.partition(separator)
        if not sep or not key:
            raise InvalidUsageError(f"Invalid {what} '{item}', expected KEY{separator}VALUE")
        key, value = key.strip(), value.strip()
        if key in result:
            existing = result[key]
            result[key] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            result[key] = value
    return result


def _parse_body(data: Optional[str]) -> Any:
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"--data is not valid JSON: {exc}") from exc


def _load(ctx: typer.Context) -> ProviderProfile:
    return load_provider(resolve_provider_name(ctx.obj.get("provider")))


def _login(profile: ProviderProfile, timeout: Optional[float]) -> TokenResponse:
    info(f"Authenticating {profile.name}...")
    token = LoopbackAuthenticator().authenticate(build_auth_config(profile), timeout=timeout)
    success(f"Authenticated {profile.name}.")
    return token


def _fail(exc: LoopauthError) -> typer.Exit:
    error(str(exc))
    return typer.Exit(code=exc.exit_code)


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("login")
def login_command(
    ctx: typer.Context,
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Seconds to wait for the browser callback."
    ),
) -> None:
    """Run the browser login and print the token response."""
    try:
        token = _login(_load(ctx), timeout)
    except LoopauthError as exc:
        raise _fail(exc) from None
    format_response(token.model_dump(mode="json", exclude_none=True))


@app.command("call")
def call_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="API path appended to the provider's base URL."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    query: list[str] = typer.Option([], "--query", "-Q", help="Query parameter KEY=VALUE."),
    header: list[str] = typer.Option([], "--header", "-H", help="Extra header KEY:VALUE."),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="JSON request body."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Seconds to wait for the browser callback."
    ),
) -> None:
    """Log in, issue one API call, and print its result.

    Prints ``null`` for an explicit empty success (201/204) and nothing for
    a 200 without a body.
    """
    try:
        spec = RequestSpec(
            method=method,
            path=path,
            query=_parse_pairs(query, "=", "query parameter"),
            headers=_parse_pairs(header, ":", "header"),
            body=_parse_body(data),
        )
        profile = _load(ctx)
        token = _login(profile, timeout)
        with create_client(build_client_config(profile, token)) as client:
            result = client.call(spec)
    except LoopauthError as exc:
        raise _fail(exc) from None

    if result is ABSENT:
        return
    format_response(result)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``loopauth`` console script.

    :class:`~loopauth.exceptions.LoopauthError` instances escaping a
    command cause a clean exit with the error's ``exit_code``.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except LoopauthError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
