"""Tests for the flow and configuration models."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from loopauth.models import AuthConfig, ClientConfig, ProviderProfile, RequestSpec, TokenResponse


def make_auth_config(**kwargs: Any) -> AuthConfig:
    defaults: dict[str, Any] = {
        "client_id": "test-client-id",
        "client_secret": "test-client-secret",
        "scopes": ("user-library-read", "user-library-modify"),
        "authorize_url": "https://accounts.example.com/authorize",
        "token_url": "https://accounts.example.com/api/token",
        "local_port": 0,
        "login_path": "/example/login",
        "callback_path": "/example/callback",
    }
    defaults.update(kwargs)
    return AuthConfig(**defaults)


class TestAuthConfig:
    def test_paths_and_port(self) -> None:
        config = make_auth_config(local_port=3000)
        assert config.local_port == 3000
        assert config.callback_path == "/example/callback"
        assert config.login_path == "/example/login"

    def test_defaults(self) -> None:
        config = make_auth_config()
        assert config.scopes == ("user-library-read", "user-library-modify")
        assert make_auth_config(login_path="/login").login_path == "/login"

    def test_paths_must_be_absolute(self) -> None:
        with pytest.raises(ValidationError):
            make_auth_config(callback_path="callback")

    @pytest.mark.parametrize("port", [-1, 65536])
    def test_port_range(self, port: int) -> None:
        with pytest.raises(ValidationError):
            make_auth_config(local_port=port)

    def test_frozen(self) -> None:
        config = make_auth_config()
        with pytest.raises(ValidationError):
            config.client_id = "other"  # type: ignore[misc]


class TestTokenResponse:
    def test_extra_fields_kept(self) -> None:
        token = TokenResponse.model_validate(
            {"access_token": "a", "token_type": "Bearer", "expires_in": 3600, "x_custom": 1}
        )
        assert token.expires_in == 3600
        assert token.refresh_token is None
        assert token.model_extra == {"x_custom": 1}

    def test_requires_access_token_and_type(self) -> None:
        with pytest.raises(ValidationError):
            TokenResponse.model_validate({"access_token": "a"})


class TestClientConfig:
    def test_from_token(self) -> None:
        token = TokenResponse(access_token="abc", token_type="Bearer")
        config = ClientConfig.from_token("https://api.example.com", token)
        assert config.base_url == "https://api.example.com"
        assert config.authorization == "Bearer abc"


class TestRequestSpec:
    def test_defaults(self) -> None:
        spec = RequestSpec(path="/v1/me")
        assert spec.method == "GET"
        assert spec.query == {}
        assert spec.headers == {}
        assert spec.body is None

    def test_method_upper_cased(self) -> None:
        assert RequestSpec(method="put", path="/x").method == "PUT"


class TestProviderProfile:
    def test_defaults(self) -> None:
        profile = ProviderProfile(
            name="p",
            base_url="https://api.example.com",
            client_id="id",
            authorize_url="https://a.example.com/authorize",
            token_url="https://a.example.com/token",
        )
        assert profile.client_secret_source == "prompt"
        assert profile.local_port == 3000
        assert profile.scopes == []

    @pytest.mark.parametrize("name", ["../escape", "a/b", "", ".hidden", "my api"])
    def test_name_must_be_a_plain_file_stem(self, name: str) -> None:
        with pytest.raises(ValidationError):
            ProviderProfile(
                name=name,
                base_url="https://api.example.com",
                client_id="id",
                authorize_url="https://a.example.com/authorize",
                token_url="https://a.example.com/token",
            )

    def test_paths_must_be_absolute(self) -> None:
        with pytest.raises(ValidationError):
            ProviderProfile(
                name="p",
                base_url="https://api.example.com",
                client_id="id",
                authorize_url="https://a.example.com/authorize",
                token_url="https://a.example.com/token",
                callback_path="callback",
            )
