"""Tests for the blocking and async wait helpers."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from loopauth.exceptions import WaitCancelled
from loopauth.wait import async_wait, wait


class TestWait:
    def test_sleeps_in_seconds(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[float] = []
        monkeypatch.setattr("loopauth.wait.time.sleep", calls.append)
        wait(2500)
        assert calls == [2.5]

    def test_negative_is_zero(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[float] = []
        monkeypatch.setattr("loopauth.wait.time.sleep", calls.append)
        wait(-10)
        assert calls == [0]

    def test_actually_waits(self) -> None:
        start = time.monotonic()
        wait(50)
        assert time.monotonic() - start >= 0.045

    def test_logs_delay_when_verbose(self, verbose_output, capfd, monkeypatch) -> None:
        monkeypatch.setattr("loopauth.wait.time.sleep", lambda s: None)
        wait(1000)
        assert "Waiting for 1000 milliseconds..." in capfd.readouterr().err

    def test_silent_by_default(self, capfd, monkeypatch) -> None:
        monkeypatch.setattr("loopauth.wait.time.sleep", lambda s: None)
        wait(1000)
        assert "Waiting" not in capfd.readouterr().err

    def test_stop_event_elapsed(self) -> None:
        wait(10, stop_event=threading.Event())

    def test_stop_event_cancels(self) -> None:
        stop = threading.Event()
        timer = threading.Timer(0.05, stop.set)
        timer.start()
        start = time.monotonic()
        try:
            with pytest.raises(WaitCancelled):
                wait(10_000, stop_event=stop)
        finally:
            timer.cancel()
        assert time.monotonic() - start < 5


class TestAsyncWait:
    def test_waits(self) -> None:
        start = time.monotonic()
        asyncio.run(async_wait(30))
        assert time.monotonic() - start >= 0.025

    def test_cancellation_aborts(self) -> None:
        async def go() -> None:
            task = asyncio.create_task(async_wait(60_000))
            await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        start = time.monotonic()
        asyncio.run(go())
        assert time.monotonic() - start < 5

    def test_logs_delay_when_verbose(self, verbose_output, capfd) -> None:
        asyncio.run(async_wait(0))
        assert "Waiting for 0 milliseconds..." in capfd.readouterr().err
