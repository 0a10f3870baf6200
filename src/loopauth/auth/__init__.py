"""Loopback OAuth2 authentication for loopauth.

Provides :class:`LoopbackAuthenticator`, which runs the authorization-code
grant through the user's browser and a transient listener on
``127.0.0.1``, and the module-level :func:`authenticate` shortcut.
"""

from loopauth.auth.loopback import (
    AuthenticatorSession,
    LoopbackAuthenticator,
    OneShot,
    authenticate,
    build_authorize_url,
    exchange_code,
)

__all__ = [
    "AuthenticatorSession",
    "LoopbackAuthenticator",
    "OneShot",
    "authenticate",
    "build_authorize_url",
    "exchange_code",
]
