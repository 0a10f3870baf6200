"""Tests for transport error classification."""

from __future__ import annotations

import h11
import httpcore
import httpx
import pytest

from loopauth.client.transport import classify_transport_error, is_connection_reset
from loopauth.exceptions import TransportErrorKind


def _chained(exc: httpx.TransportError, cause: BaseException) -> httpx.TransportError:
    exc.__cause__ = cause
    return exc


class TestIsConnectionReset:
    @pytest.mark.parametrize(
        "cause", [ConnectionResetError(104, "reset"), BrokenPipeError(32, "pipe"), ConnectionAbortedError()]
    )
    def test_read_error_caused_by_reset(self, cause: BaseException) -> None:
        assert is_connection_reset(_chained(httpx.ReadError("boom"), cause))

    def test_write_error_caused_by_reset(self) -> None:
        assert is_connection_reset(_chained(httpx.WriteError("boom"), BrokenPipeError()))

    def test_reset_deeper_in_chain(self) -> None:
        inner = OSError("wrapped")
        inner.__context__ = ConnectionResetError()
        assert is_connection_reset(_chained(httpx.ReadError("boom"), inner))

    def test_peer_disconnect_protocol_error(self) -> None:
        source = _chained(
            httpx.RemoteProtocolError("Server disconnected without sending a response."),
            httpcore.RemoteProtocolError("Server disconnected without sending a response."),
        )
        assert is_connection_reset(source)

    def test_malformed_response_protocol_error(self) -> None:
        parser_error = h11.RemoteProtocolError("illegal status line: bytearray(b'GARBAGE')", 400)
        core_error = httpcore.RemoteProtocolError(parser_error)
        core_error.__cause__ = parser_error
        source = _chained(httpx.RemoteProtocolError(str(parser_error)), core_error)
        assert not is_connection_reset(source)

    def test_bare_protocol_error_is_not_reset(self) -> None:
        assert not is_connection_reset(httpx.RemoteProtocolError("Server disconnected"))

    def test_protocol_error_caused_by_reset(self) -> None:
        source = _chained(httpx.RemoteProtocolError("peer closed"), ConnectionResetError())
        assert is_connection_reset(source)

    def test_read_error_without_reset_cause(self) -> None:
        assert not is_connection_reset(_chained(httpx.ReadError("boom"), OSError("other")))

    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
            _chained(httpx.ConnectError("refused"), ConnectionResetError()),
        ],
    )
    def test_not_resets(self, exc: httpx.TransportError) -> None:
        assert not is_connection_reset(exc)


class TestClassify:
    def test_reset(self) -> None:
        source = _chained(httpx.ReadError("boom"), ConnectionResetError())
        error = classify_transport_error(source)
        assert error.kind is TransportErrorKind.CONNECTION_RESET
        assert error.is_connection_reset
        assert error.cause is source

    def test_other(self) -> None:
        error = classify_transport_error(httpx.ConnectError("refused"))
        assert error.kind is TransportErrorKind.OTHER
        assert "ConnectError" in str(error)
