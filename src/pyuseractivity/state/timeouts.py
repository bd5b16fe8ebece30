"""Re-armable expiry timers per ``(element, activity type)``."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from pyuseractivity._scheduling import Scheduler, TimerHandle

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _PendingTimeout:
    """A scheduled expiry. ``element`` follows renames of the element."""

    element: str
    activity_type: str
    handle: TimerHandle | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.element, self.activity_type)


class TimeoutRegistry:
    """Expire activations that are not renewed in time.

    Each key owns at most one pending timer. Arming an armed key restarts
    its countdown; when a timer fires, *on_expire* receives the element and
    activity type and the key is forgotten.
    """

    def __init__(self, scheduler: Scheduler, on_expire: Callable[[str, str], object]) -> None:
        self._scheduler = scheduler
        self._on_expire = on_expire
        self._pending: dict[tuple[str, str], _PendingTimeout] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def is_armed(self, element: str, activity_type: str) -> bool:
        return (element, activity_type) in self._pending

    def arm(self, element: str, activity_type: str, seconds: float) -> None:
        entry = self._pending.get((element, activity_type))
        if entry is None:
            entry = _PendingTimeout(element=element, activity_type=activity_type)
            self._pending[entry.key] = entry
        elif entry.handle is not None:
            entry.handle.cancel()
        entry.handle = self._scheduler.call_later(seconds, self._expire, entry)
        _logger.debug("Armed %ss timeout for %s on %s", seconds, activity_type, element)

    def cancel(self, element: str, activity_type: str) -> None:
        entry = self._pending.pop((element, activity_type), None)
        if entry is not None and entry.handle is not None:
            entry.handle.cancel()

    def cancel_all(self) -> None:
        entries = list(self._pending.values())
        self._pending.clear()
        for entry in entries:
            if entry.handle is not None:
                entry.handle.cancel()

    def rename_element(self, old: str, new: str) -> None:
        """Re-key pending timers of *old* to *new*; countdowns keep running.

        A timer already pending for *new* with the same activity type is
        cancelled in favour of the moved one.
        """
        if old == new:
            return
        moved = [entry for key, entry in self._pending.items() if key[0] == old]
        for entry in moved:
            del self._pending[entry.key]
            self.cancel(new, entry.activity_type)
            entry.element = new
            self._pending[entry.key] = entry

    def _expire(self, entry: _PendingTimeout) -> None:
        if self._pending.get(entry.key) is not entry:
            return
        del self._pending[entry.key]
        _logger.debug("Activity %s on %s timed out", entry.activity_type, entry.element)
        self._on_expire(entry.element, entry.activity_type)
