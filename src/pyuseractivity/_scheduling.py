"""Structural timer interface shared by the poll scheduler and timeouts."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Minimal subset of :class:`asyncio.AbstractEventLoop` used for timers.

    Having a protocol here makes it easy to drive time by hand in tests
    while production code simply passes the running event loop.
    """

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...
