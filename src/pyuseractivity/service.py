"""High-level async user activity service."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, TypeVar

import aiohttp

from pyuseractivity._scheduling import Scheduler
from pyuseractivity._transport import HttpTransport, Transport
from pyuseractivity.bus import MessageBus
from pyuseractivity.config import UserActivityConfig
from pyuseractivity.exceptions import UserActivityError, UserActivityStateError
from pyuseractivity.models.activity import ElementActivities, ElementActivity
from pyuseractivity.models.descriptor import ActivityDescriptor
from pyuseractivity.router import ActivityRouter
from pyuseractivity.scheduler import PollScheduler
from pyuseractivity.state.events import ActivityUpdate
from pyuseractivity.state.store import ActivityStore
from pyuseractivity.state.timeouts import TimeoutRegistry
from pyuseractivity.sync import UserActivitySync

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class UserActivityService:
    """Aggregate local activity signals and synchronize them with collaborators.

    Usage::

        async with UserActivityService(config, bus) as service:
            service.start(
                ActivityDescriptor(name="editor.opened", element_key="path", activity_type="openedFile"),
                ActivityDescriptor(name="editor.closed", element_key="path", activity_type="openedFile", active=False),
            )
            ...
            await service.stop()

    Polling begins with the first accepted signal: every signal triggers an
    immediate poll and restarts the periodic cadence. Replies are published
    on the bus as ``user.activity.updated``.
    """

    def __init__(
        self,
        config: UserActivityConfig,
        bus: MessageBus,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._config = config
        self._bus = bus
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._scheduler = scheduler
        self._store = ActivityStore()
        self._timeouts: TimeoutRegistry | None = None
        self._poller: PollScheduler | None = None
        self._router: ActivityRouter | None = None
        self._sync: UserActivitySync | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._poll_tasks: set[asyncio.Task[None]] = set()
        self._running = False

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> UserActivityService:
        self._loop = asyncio.get_running_loop()
        scheduler: Scheduler = self._scheduler if self._scheduler is not None else self._loop
        transport = self._transport
        if transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = HttpTransport(
                self._http_session,
                timeout=self._config.request_timeout,
                user_agent=self._config.user_agent,
            )
        self._timeouts = TimeoutRegistry(scheduler, self._on_timeout)
        self._poller = PollScheduler(scheduler, self._on_tick, interval=self._config.polling_interval)
        self._router = ActivityRouter(self._bus, self._store, self._timeouts, on_update=self._on_update)
        self._sync = UserActivitySync(transport, self._bus, self._config.poll_url)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop (with sign-off) if running, cancel in-flight polls, release HTTP resources."""
        if self._running:
            await self.stop()
        await self._cancel_poll_tasks()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._timeouts = None
        self._poller = None
        self._router = None
        self._sync = None
        self._loop = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def store(self) -> ActivityStore:
        return self._store

    def snapshot(self) -> list[ElementActivities]:
        """Local activities as they would be sent with the next poll."""
        return self._store.snapshot()

    def start(self, *descriptors: ActivityDescriptor) -> None:
        """Subscribe to the signals described by *descriptors*."""
        router = self._require(self._router)
        if self._running:
            raise UserActivityStateError("User activity service already started")
        router.start(descriptors)
        self._running = True
        _logger.debug("User activity service started with %d descriptor(s)", len(descriptors))

    async def stop(self) -> None:
        """Stop listening and send the sign-off poll.

        Subscriptions, the poll cadence, and pending timeouts are torn down
        before the store is cleared, so the sign-off snapshot is final. Polls
        still pending are cancelled first so none can follow the sign-off.
        The sign-off reply is still broadcast.
        """
        if not self._running:
            return
        self._running = False
        self._require(self._router).stop()
        self._require(self._poller).stop()
        self._require(self._timeouts).cancel_all()
        await self._cancel_poll_tasks()
        self._store.clear()
        await self._poll_and_log(self._store.snapshot(), "sign-off")

    async def poll(self) -> list[ElementActivity] | None:
        """Poll right away, outside the cadence. Errors propagate."""
        sync = self._require(self._sync)
        return await sync.poll(self._store.snapshot())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require(component: T | None) -> T:
        if component is None:
            raise UserActivityStateError(
                "Service not initialized. Use 'async with UserActivityService(...) as service:'"
            )
        return component

    def _on_update(self, update: ActivityUpdate) -> None:
        _logger.debug(
            "%s on %s (active=%s) at %s",
            update.descriptor,
            update.target_element,
            update.active,
            update.observed_at.isoformat(),
        )
        self._require(self._poller).restart()

    def _on_tick(self) -> None:
        loop = self._loop
        if loop is None:
            return
        snapshot = self._store.snapshot()
        task = loop.create_task(self._poll_and_log(snapshot, "periodic"))
        self._poll_tasks.add(task)
        task.add_done_callback(self._poll_tasks.discard)

    async def _cancel_poll_tasks(self) -> None:
        tasks = list(self._poll_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._poll_tasks.clear()

    def _on_timeout(self, element: str, activity_type: str) -> None:
        self._store.clear_activity(element, activity_type)

    async def _poll_and_log(self, snapshot: list[ElementActivities], reason: str) -> None:
        sync = self._sync
        if sync is None:
            return
        try:
            await sync.poll(snapshot)
        except UserActivityError as exc:
            # The next tick is the retry; nothing is queued.
            _logger.warning("User activity %s poll failed: %s", reason, exc)
