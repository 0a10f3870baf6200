"""Result shapes returned by :meth:`~loopauth.client.Client.call`.

The wrapped APIs vary their body conventions per endpoint, and callers rely
on telling the three success shapes apart:

* a parsed JSON value -- ``200`` with a body;
* ``None`` -- explicit empty success (``201`` / ``204``);
* :data:`ABSENT` -- ``200`` with no body at all (e.g. ``PUT`` endpoints).

:data:`ABSENT` is a falsy singleton so ``if result:`` still reads naturally,
while ``result is None`` and ``result is ABSENT`` stay distinct.
"""

from __future__ import annotations

from typing import Any

import httpx

from loopauth.exceptions import APIError


class _Absent:
    """Type of :data:`ABSENT`; only one instance ever exists."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()
"""Returned for a ``200`` response with an empty body."""


def read_ok_body(response: httpx.Response) -> Any:
    """Return the parsed JSON of a ``200`` response, or :data:`ABSENT` if empty.

    Raises:
        APIError: If the body is present but not valid JSON.
    """
    if not response.content:
        return ABSENT
    try:
        return response.json()
    except ValueError as exc:
        raise APIError(response.status_code, response.text) from exc
