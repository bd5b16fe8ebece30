from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import pytest

from pyuseractivity.bus import LocalMessageBus
from pyuseractivity.config import UserActivityConfig


class ManualTimerHandle:
    def __init__(self, when: float, sequence: int, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.when = when
        self.sequence = sequence
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Scheduler double: timers only fire when the test advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self._sequence = 0
        self._timers: list[ManualTimerHandle] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualTimerHandle:
        self._sequence += 1
        handle = ManualTimerHandle(self.now + delay, self._sequence, callback, args)
        self._timers.append(handle)
        return handle

    @property
    def pending(self) -> list[ManualTimerHandle]:
        return [timer for timer in self._timers if not timer.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [timer for timer in self.pending if timer.when <= target]
            if not due:
                break
            timer = min(due, key=lambda item: (item.when, item.sequence))
            self._timers.remove(timer)
            self.now = timer.when
            timer.callback(*timer.args)
        self._timers = self.pending
        self.now = target


@dataclass
class FakeActivityBackend:
    """Transport double recording every poll."""

    response: Any = field(default_factory=list)
    error: Exception | None = None
    calls: list[tuple[str, Any]] = field(default_factory=list)

    @property
    def bodies(self) -> list[Any]:
        return [body for _url, body in self.calls]

    async def post_json(self, url: str, body: Any) -> Any:
        self.calls.append((url, body))
        if self.error is not None:
            raise self.error
        if callable(self.response):
            return self.response(body)
        return self.response


async def settle() -> None:
    """Let spawned poll tasks run to completion."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def backend() -> FakeActivityBackend:
    return FakeActivityBackend()


@pytest.fixture
def bus() -> LocalMessageBus:
    return LocalMessageBus()


@pytest.fixture
def config() -> UserActivityConfig:
    return UserActivityConfig(service_url="http://localhost:9080")


@pytest.fixture(name="settle")
def settle_fixture() -> Callable[[], Any]:
    return settle
