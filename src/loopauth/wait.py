"""Delays used by the client's retry paths.

:func:`wait` blocks the calling thread; :func:`async_wait` suspends the
calling coroutine. Both take milliseconds and log the delay at debug level.

Neither leaves a pending timer behind when interrupted: ``time.sleep`` is
aborted by ``KeyboardInterrupt``, ``asyncio.sleep`` by task cancellation, and
:func:`wait` additionally accepts a ``stop_event`` that a shutdown path can
set from another thread.
"""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Optional

from loopauth.exceptions import WaitCancelled
from loopauth.output import debug


def wait(milliseconds: int, stop_event: Optional[threading.Event] = None) -> None:
    """Block for at least *milliseconds*.

    Args:
        milliseconds: Delay length. Negative values are treated as zero.
        stop_event: When given, setting it ends the wait early.

    Raises:
        WaitCancelled: If *stop_event* was set before the delay elapsed.
    """
    debug(f"Waiting for {milliseconds} milliseconds...")
    seconds = max(milliseconds, 0) / 1000
    if stop_event is None:
        time.sleep(seconds)
        return
    if stop_event.wait(seconds):
        raise WaitCancelled(f"Wait of {milliseconds} ms cancelled")


async def async_wait(milliseconds: int) -> None:
    """Suspend the current task for at least *milliseconds*."""
    debug(f"Waiting for {milliseconds} milliseconds...")
    await asyncio.sleep(max(milliseconds, 0) / 1000)
