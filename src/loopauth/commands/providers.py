"""Provider commands -- manage the stored provider profiles.

Provides the ``loopauth providers`` sub-command group. Each provider is one
JSON file in the providers directory (see
:func:`~loopauth.config.get_providers_dir`) holding the OAuth2 endpoints,
the client ID, a reference to where the client secret comes from, and the
API base URL. Secrets themselves and tokens are never written.
"""

from __future__ import annotations

from typing import Optional

import typer

from loopauth.exceptions import LoopauthError
from loopauth.output import error, info, print_table, success


providers_app = typer.Typer(no_args_is_help=True)


@providers_app.command("list")
def providers_list() -> None:
    """List configured provider profiles.

    Example::

        loopauth providers list
        loopauth --json providers list
    """
    from loopauth.config import list_providers, load_provider

    rows: list[list[str]] = []
    try:
        for name in list_providers():
            profile = load_provider(name)
            rows.append([profile.name, profile.base_url, " ".join(profile.scopes)])
    except LoopauthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    if not rows:
        info("No providers configured.")
        return
    print_table(["name", "base_url", "scopes"], rows, title="Providers")


@providers_app.command("add")
def providers_add(
    name: str = typer.Argument(help="Provider name, used with --provider."),
    base_url: str = typer.Option(..., "--base-url", help="URL prefix for API paths."),
    client_id: str = typer.Option(..., "--client-id", help="OAuth2 client ID."),
    authorize_url: str = typer.Option(..., "--authorize-url", help="Authorization endpoint."),
    token_url: str = typer.Option(..., "--token-url", help="Token endpoint."),
    scope: list[str] = typer.Option([], "--scope", "-s", help="Scope to request (repeatable)."),
    secret_source: str = typer.Option(
        "prompt",
        "--secret-source",
        help="Client secret source: env:VAR, file:/path, prompt, value:SECRET.",
    ),
    port: int = typer.Option(3000, "--port", help="Loopback listener port (0 = ephemeral)."),
    login_path: str = typer.Option("/login", "--login-path", help="Path that starts the login."),
    callback_path: str = typer.Option(
        "/callback", "--callback-path", help="Path the provider redirects back to."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing provider."),
) -> None:
    """Save a new provider profile.

    The redirect URI registered with the provider must be
    ``http://127.0.0.1:<port><callback-path>``.

    Raises:
        typer.Exit: With code 2 if the values fail validation, or with the
            config error's code if the provider already exists and
            ``--force`` is not given.

    Example::

        loopauth providers add spotify \\
            --base-url https://api.spotify.com \\
            --client-id 4dda6e4c \\
            --authorize-url https://accounts.spotify.com/authorize \\
            --token-url https://accounts.spotify.com/api/token \\
            --scope user-library-modify \\
            --secret-source env:SPOTIFY_CLIENT_SECRET
    """
    from pydantic import ValidationError

    from loopauth.config import list_providers, save_provider
    from loopauth.exceptions import ConfigError
    from loopauth.models import ProviderProfile

    try:
        profile = ProviderProfile(
            name=name,
            base_url=base_url,
            client_id=client_id,
            client_secret_source=secret_source,
            scopes=scope,
            authorize_url=authorize_url,
            token_url=token_url,
            local_port=port,
            login_path=login_path,
            callback_path=callback_path,
        )
    except ValidationError as exc:
        error(f"Invalid provider: {exc}")
        raise typer.Exit(code=2) from None

    if name in list_providers() and not force:
        exc = ConfigError(f"Provider '{name}' already exists (use --force to overwrite)")
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    save_provider(profile)
    success(f"Saved provider '{name}'.")


@providers_app.command("remove")
def providers_remove(
    name: str = typer.Argument(help="Provider to remove."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip the confirmation prompt."),
) -> None:
    """Delete a provider profile.

    Asks for confirmation unless ``--force`` is given.

    Example::

        loopauth providers remove spotify
        loopauth providers remove spotify --force
    """
    from loopauth.config import delete_provider

    if not force:
        confirmed = typer.confirm(f"Remove provider '{name}'?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    try:
        delete_provider(name)
    except LoopauthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    success(f"Removed provider '{name}'.")
