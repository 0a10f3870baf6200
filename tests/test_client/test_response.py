"""Tests for the ABSENT sentinel and 200-body reading."""

from __future__ import annotations

import copy
import pickle

import httpx
import pytest

from loopauth.client.response import ABSENT, _Absent, read_ok_body
from loopauth.exceptions import APIError


class TestAbsent:
    def test_singleton(self) -> None:
        assert _Absent() is ABSENT

    def test_distinct_from_none(self) -> None:
        assert ABSENT is not None
        assert ABSENT != None  # noqa: E711

    def test_falsy(self) -> None:
        assert not ABSENT

    def test_repr(self) -> None:
        assert repr(ABSENT) == "ABSENT"

    def test_survives_copy_and_pickle(self) -> None:
        assert copy.deepcopy(ABSENT) is ABSENT
        assert pickle.loads(pickle.dumps(ABSENT)) is ABSENT


class TestReadOkBody:
    def test_empty_is_absent(self) -> None:
        assert read_ok_body(httpx.Response(200)) is ABSENT

    def test_json_object(self) -> None:
        assert read_ok_body(httpx.Response(200, json={"a": [1]})) == {"a": [1]}

    def test_json_null_is_none(self) -> None:
        assert read_ok_body(httpx.Response(200, content=b"null")) is None

    def test_invalid_json(self) -> None:
        with pytest.raises(APIError) as exc_info:
            read_ok_body(httpx.Response(200, text="<html>oops</html>"))
        assert exc_info.value.status_code == 200
        assert exc_info.value.body == "<html>oops</html>"
