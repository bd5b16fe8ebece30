"""Polling cadence that restarts whenever new activity arrives."""

from __future__ import annotations

import logging
from collections.abc import Callable

from pyuseractivity._constants import POLLING_INTERVAL
from pyuseractivity._scheduling import Scheduler, TimerHandle

_logger = logging.getLogger(__name__)


class PollScheduler:
    """Tick immediately, then every *interval* seconds, until restarted or stopped.

    Every (re)start opens a new generation. Ticks remember the generation
    they were scheduled under and do nothing once it is no longer current,
    so a restart both triggers an immediate tick and pushes the next
    periodic one a full interval into the future.

    The immediate tick is scheduled with zero delay rather than invoked
    inline: it runs after the caller's turn, once the update that caused
    the restart has been applied.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_tick: Callable[[], object],
        *,
        interval: float = POLLING_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._scheduler = scheduler
        self._on_tick = on_tick
        self._interval = interval
        self._generation = 0
        self._running = False
        self._handle: TimerHandle | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def generation(self) -> int:
        return self._generation

    def start(self) -> None:
        self._cancel_pending()
        self._generation += 1
        self._running = True
        self._schedule(0, self._generation)

    def restart(self) -> None:
        _logger.debug("Restarting poll cadence (generation %d)", self._generation + 1)
        self.start()

    def stop(self) -> None:
        self._cancel_pending()
        self._generation += 1
        self._running = False

    def _schedule(self, delay: float, generation: int) -> None:
        self._handle = self._scheduler.call_later(delay, self._tick, generation)

    def _cancel_pending(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()

    def _tick(self, generation: int) -> None:
        if generation != self._generation or not self._running:
            return
        self._handle = None
        try:
            self._on_tick()
        finally:
            # on_tick may have stopped or restarted the cadence.
            if generation == self._generation and self._running:
                self._schedule(self._interval, generation)
