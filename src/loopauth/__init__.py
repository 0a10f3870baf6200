"""loopauth -- OAuth2 loopback login and a resilient, rate-limit-aware API client.

The package solves two problems for long-running batch jobs against
third-party APIs:

* obtaining a user-delegated access token through the browser without a
  public callback endpoint, by standing up a transient listener on
  ``127.0.0.1`` (:mod:`loopauth.auth`);
* calling the API reliably despite connection resets, rate limiting, flaky
  load-balanced backends, and inconsistent empty-success conventions
  (:mod:`loopauth.client`).

Typical use::

    from loopauth.auth import authenticate
    from loopauth.client import create_client
    from loopauth.models import ClientConfig, RequestSpec

    token = authenticate(auth_config)
    with create_client(ClientConfig.from_token(base_url, token)) as client:
        me = client.call(RequestSpec(path="/v1/me"))

Modules:
    app: Typer CLI entry point.
    models: Pydantic models shared across the entire package.
    config: Provider profiles and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    wait: Millisecond delays used by the retry paths.
"""

__version__ = "0.1.0"
