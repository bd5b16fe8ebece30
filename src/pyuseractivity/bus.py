"""Publish/subscribe message bus interface and an in-process implementation."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

_logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class MessageBus(Protocol):
    """Structural bus interface consumed by the service.

    Any object offering ``subscribe`` and ``publish`` with these shapes can
    be passed in; :class:`LocalMessageBus` is the bundled implementation.
    """

    def subscribe(self, name: str, handler: Handler) -> Subscription: ...

    def publish(self, name: str, payload: Any) -> None: ...


class _LocalSubscription:
    __slots__ = ("_bus", "_name", "_handler", "_active")

    def __init__(self, bus: LocalMessageBus, name: str, handler: Handler) -> None:
        self._bus = bus
        self._name = name
        self._handler = handler
        self._active = True

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._bus._remove(self._name, self)

    def _deliver(self, payload: Any) -> None:
        if self._active:
            self._handler(payload)


class LocalMessageBus:
    """Synchronous in-process bus.

    ``publish`` calls every handler subscribed to the name, in subscription
    order, before returning. A failing handler is logged and does not stop
    delivery to the others.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[_LocalSubscription]] = {}

    def subscribe(self, name: str, handler: Handler) -> _LocalSubscription:
        subscription = _LocalSubscription(self, name, handler)
        self._subscriptions.setdefault(name, []).append(subscription)
        return subscription

    def publish(self, name: str, payload: Any) -> None:
        for subscription in list(self._subscriptions.get(name, ())):
            try:
                subscription._deliver(payload)
            except Exception:
                _logger.exception("Handler for %s failed", name)

    def subscriber_count(self, name: str) -> int:
        return len(self._subscriptions.get(name, ()))

    def _remove(self, name: str, subscription: _LocalSubscription) -> None:
        subscriptions = self._subscriptions.get(name)
        if not subscriptions:
            return
        if subscription in subscriptions:
            subscriptions.remove(subscription)
        if not subscriptions:
            del self._subscriptions[name]
