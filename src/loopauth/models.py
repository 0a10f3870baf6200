"""Canonical Pydantic models shared across all loopauth modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into two groups:

**Flow models** -- immutable values handed between the caller and the core:
    :class:`AuthConfig`, :class:`TokenResponse`, :class:`ClientConfig`, and
    :class:`RequestSpec`.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`ProviderProfile`.

All flow models are frozen. :class:`TokenResponse` uses ``extra="allow"`` so
that provider-specific fields of the token endpoint's JSON are preserved in
``model_extra``.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOOPBACK_HOST = "127.0.0.1"
_PROVIDER_NAME = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")


def _absolute_path(value: str) -> str:
    if not value.startswith("/"):
        raise ValueError(f"path must start with '/': {value!r}")
    return value


# --- Authenticator input / output ---


class AuthConfig(BaseModel):
    """Per-provider input of one loopback authorization-code run.

    Example::

        AuthConfig(
            client_id="4dda6e4c",
            client_secret="2a9be640",
            scopes=("user-library-modify",),
            authorize_url="https://accounts.spotify.com/authorize",
            token_url="https://accounts.spotify.com/api/token",
            local_port=3000,
            login_path="/spotify/login",
            callback_path="/spotify/callback",
        )
    """

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str
    scopes: tuple[str, ...] = ()
    authorize_url: str
    token_url: str
    local_port: int = Field(default=3000, ge=0, le=65535)
    login_path: str = "/login"
    callback_path: str = "/callback"

    @field_validator("login_path", "callback_path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        return _absolute_path(value)


class TokenResponse(BaseModel):
    """Parsed JSON body of a successful token endpoint response."""

    model_config = ConfigDict(frozen=True, extra="allow")

    access_token: str
    token_type: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None


# --- Client input ---


class ClientConfig(BaseModel):
    """Immutable construction input of a :class:`~loopauth.client.Client`."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    token_type: str
    access_token: str

    @classmethod
    def from_token(cls, base_url: str, token: TokenResponse) -> ClientConfig:
        """Derive a client config from a token response."""
        return cls(
            base_url=base_url,
            token_type=token.token_type,
            access_token=token.access_token,
        )

    @property
    def authorization(self) -> str:
        """Value of the ``Authorization`` header sent with every call."""
        return f"{self.token_type} {self.access_token}"


class RequestSpec(BaseModel):
    """One API call: ``path`` is appended to the client's base URL.

    ``body`` is serialised as JSON when it is not ``None``. Entries in
    ``headers`` override the client's default headers.
    """

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    path: str
    query: dict[str, Any] = Field(default_factory=dict)
    body: Any = None
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()


# --- Provider profiles ---


class ProviderProfile(BaseModel):
    """A named provider stored in the config directory.

    Holds everything needed to build an :class:`AuthConfig` and a
    :class:`ClientConfig` except the secret itself, which is referenced by
    ``client_secret_source`` and resolved at runtime by
    :func:`loopauth.config.resolve_credential`. Tokens are never stored.

    Example::

        ProviderProfile(
            name="spotify",
            base_url="https://api.spotify.com",
            client_id="4dda6e4c",
            client_secret_source="env:SPOTIFY_CLIENT_SECRET",
            scopes=["user-library-modify"],
            authorize_url="https://accounts.spotify.com/authorize",
            token_url="https://accounts.spotify.com/api/token",
        )
    """

    name: str = Field(description="Provider name, also the profile file name")
    base_url: str = Field(description="URL prefix every API path is appended to")
    client_id: str
    client_secret_source: str = Field(
        default="prompt",
        description="Credential source: env:VAR, file:/path, prompt, value:SECRET",
    )
    scopes: list[str] = Field(default_factory=list)
    authorize_url: str
    token_url: str
    local_port: int = Field(default=3000, ge=0, le=65535)
    login_path: str = "/login"
    callback_path: str = "/callback"

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not _PROVIDER_NAME.fullmatch(value):
            raise ValueError(
                f"provider name must be letters, digits, '.', '_' or '-': {value!r}"
            )
        return value

    @field_validator("login_path", "callback_path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        return _absolute_path(value)
