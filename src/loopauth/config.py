"""Configuration management with XDG paths, atomic writes, and credential resolution.

This module handles the persistent configuration of loopauth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.loopauth/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_providers_dir`.
* **Provider profiles** -- One JSON file per OAuth2 provider, each
  deserialised into a :class:`~loopauth.models.ProviderProfile`. Managed via
  :func:`load_provider`, :func:`save_provider`, :func:`delete_provider`.
* **Credential resolution** -- :func:`resolve_credential` reads the client
  secret from env vars, files, interactive prompts, or a literal value.
* **Flow inputs** -- :func:`build_auth_config` and :func:`build_client_config`
  turn a profile (and a token) into the immutable values the core consumes.

Tokens are never written to disk. All file writes use an atomic
temp-file-then-rename strategy (:func:`_atomic_write`).
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional

from loopauth.exceptions import ConfigError
from loopauth.models import AuthConfig, ClientConfig, ProviderProfile, TokenResponse

_APP_NAME = "loopauth"
_PROVIDER_ENV_VAR = "LOOPAUTH_PROVIDER"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform uses the XDG Base Directory layout (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/loopauth/`` (default ``~/.config/loopauth/``).
    On macOS/Windows: ``~/.loopauth/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_providers_dir() -> Path:
    """Return ``<config_dir>/providers/``, creating it if necessary."""
    path = get_config_dir() / "providers"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Provider profiles ---


def _provider_path(name: str) -> Path:
    return get_providers_dir() / f"{name}.json"


def list_providers() -> list[str]:
    """Return all provider names found in the providers directory, sorted alphabetically."""
    return sorted(p.stem for p in get_providers_dir().glob("*.json") if p.is_file())


def load_provider(name: str) -> ProviderProfile:
    """Load and validate a provider profile from disk.

    Args:
        name: Provider name (corresponds to ``<name>.json`` in the providers
            directory).

    Raises:
        ConfigError: If the file does not exist, contains invalid JSON, or
            fails Pydantic validation.
    """
    path = _provider_path(name)
    if not path.is_file():
        raise ConfigError(f"Provider '{name}' not found at {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ProviderProfile.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid provider '{name}' at {path}: {exc}") from exc


def save_provider(profile: ProviderProfile) -> None:
    """Persist a provider profile atomically, named after ``profile.name``."""
    data = profile.model_dump(mode="json")
    _atomic_write(_provider_path(profile.name), json.dumps(data, indent=2) + "\n")


def delete_provider(name: str) -> None:
    """Delete a provider profile.

    Raises:
        ConfigError: If the provider does not exist.
    """
    path = _provider_path(name)
    if not path.is_file():
        raise ConfigError(f"Provider '{name}' not found at {path}")
    path.unlink()


def resolve_provider_name(name: Optional[str]) -> str:
    """Return *name*, falling back to ``$LOOPAUTH_PROVIDER``.

    Raises:
        ConfigError: If neither is set.
    """
    resolved = name or os.environ.get(_PROVIDER_ENV_VAR)
    if not resolved:
        raise ConfigError(
            f"No provider given and {_PROVIDER_ENV_VAR} is not set"
        )
    return resolved


# --- Credentials ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)
        - ``"value:SECRET"`` -- the literal text after the prefix

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter client secret: ")

    if source.startswith("value:"):
        return source[6:]

    raise ConfigError(f"Unknown credential source format: {source}")


# --- Flow inputs ---


def build_auth_config(profile: ProviderProfile) -> AuthConfig:
    """Resolve the profile's secret and return the authenticator input."""
    return AuthConfig(
        client_id=profile.client_id,
        client_secret=resolve_credential(profile.client_secret_source),
        scopes=tuple(profile.scopes),
        authorize_url=profile.authorize_url,
        token_url=profile.token_url,
        local_port=profile.local_port,
        login_path=profile.login_path,
        callback_path=profile.callback_path,
    )


def build_client_config(profile: ProviderProfile, token: TokenResponse) -> ClientConfig:
    """Combine the profile's base URL with a freshly obtained token."""
    return ClientConfig.from_token(profile.base_url, token)
