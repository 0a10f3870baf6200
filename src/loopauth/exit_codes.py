"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~loopauth.exceptions.LoopauthError` subclass.
Shell wrappers around a long-running batch job can inspect the exit code to
tell an authentication problem from an API rejection without parsing stderr.

Example::

    $ loopauth -p spotify call /v1/me
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the browser flow or token exchange failed
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The loopback authorization flow or the token exchange failed."""

EXIT_API_ERROR = 5
"""The remote API answered with a status code that is not retried."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred that is not a transient connection reset."""

EXIT_INTERRUPTED = 130
"""The process was interrupted (Ctrl-C)."""
