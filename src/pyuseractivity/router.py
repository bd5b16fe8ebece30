"""Turn bus signals into activity state changes.

The router owns the bus subscriptions for the configured descriptors. For
each received payload it:

- resolves the element id (and rename target) from the payload
- evaluates the descriptor's ``active`` flag once
- notifies the update listener (the service restarts its poll cadence)
- applies the update to the store, transition rules, and timeouts

Payloads that cannot be resolved are logged and dropped before anything
else happens.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pyuseractivity.bus import MessageBus, Subscription
from pyuseractivity.models.descriptor import ActivityDescriptor
from pyuseractivity.state import transitions as _transitions
from pyuseractivity.state.events import ActivityUpdate
from pyuseractivity.state.store import ActivityStore
from pyuseractivity.state.timeouts import TimeoutRegistry

_logger = logging.getLogger(__name__)

_MISSING = object()


def lookup_key_path(payload: Mapping[str, Any], key_path: str) -> Any:
    """Return the value at *key_path*, or ``None`` when absent.

    A literal key wins; otherwise dots separate keys of nested mappings.
    """
    value = payload.get(key_path, _MISSING)
    if value is not _MISSING:
        return value
    current: Any = payload
    for part in key_path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return None
    return current


def _resolve_element(payload: Mapping[str, Any], key_path: str) -> str | None:
    value = lookup_key_path(payload, key_path)
    if isinstance(value, str) and value:
        return value
    return None


def resolve_update(descriptor: ActivityDescriptor, payload: Any) -> ActivityUpdate | None:
    """Resolve *payload* received for *descriptor*; ``None`` if it is malformed."""
    if not isinstance(payload, Mapping):
        _logger.error(
            'Failed to determine workspace element for user activity event "%s" (payload empty or not a mapping): %r',
            descriptor.name,
            payload,
        )
        return None

    element = _resolve_element(payload, descriptor.element_key)
    if element is None:
        _logger.error(
            'Failed to determine workspace element for user activity event "%s" (missing field "%s"): %r',
            descriptor.name,
            descriptor.element_key,
            payload,
        )
        return None

    new_element: str | None = None
    if descriptor.rename_to_element_key is not None:
        new_element = _resolve_element(payload, descriptor.rename_to_element_key)
        if new_element is None:
            _logger.error(
                'Failed to determine renamed element for user activity event "%s" (missing field "%s"): %r',
                descriptor.name,
                descriptor.rename_to_element_key,
                payload,
            )
            return None

    try:
        active = descriptor.resolve_active(payload)
    except Exception:
        _logger.exception('Evaluating "active" failed for user activity event "%s"', descriptor.name)
        return None

    return ActivityUpdate(
        descriptor=descriptor.name,
        element=element,
        new_element=new_element,
        active=active,
    )


class ActivityRouter:
    """Subscribe descriptors to the bus and apply resolved updates."""

    def __init__(
        self,
        bus: MessageBus,
        store: ActivityStore,
        timeouts: TimeoutRegistry,
        *,
        on_update: Callable[[ActivityUpdate], object] | None = None,
    ) -> None:
        self._bus = bus
        self._store = store
        self._timeouts = timeouts
        self._on_update = on_update
        self._subscriptions: list[Subscription] = []

    @property
    def subscribed(self) -> bool:
        return bool(self._subscriptions)

    def start(self, descriptors: Iterable[ActivityDescriptor]) -> None:
        for descriptor in descriptors:
            subscription = self._bus.subscribe(descriptor.name, self._make_handler(descriptor))
            self._subscriptions.append(subscription)
            _logger.debug("Subscribed to %s", descriptor.name)

    def stop(self) -> None:
        subscriptions = self._subscriptions
        self._subscriptions = []
        for subscription in subscriptions:
            subscription.unsubscribe()

    def _make_handler(self, descriptor: ActivityDescriptor) -> Callable[[Any], None]:
        def _handle(payload: Any) -> None:
            self.handle(descriptor, payload)

        return _handle

    def handle(self, descriptor: ActivityDescriptor, payload: Any) -> ActivityUpdate | None:
        """Process one signal for *descriptor*. Returns the applied update."""
        update = resolve_update(descriptor, payload)
        if update is None:
            return None
        if self._on_update is not None:
            self._on_update(update)
        self.apply(descriptor, update)
        return update

    def apply(self, descriptor: ActivityDescriptor, update: ActivityUpdate) -> None:
        if update.new_element is not None:
            self._store.rename_element(update.element, update.new_element)
            self._timeouts.rename_element(update.element, update.new_element)

        element = update.target_element
        group = descriptor.effective_group
        armed_type: str | None = None

        transitions = descriptor.transitions
        if transitions is not None:
            if not update.active:
                return
            current = self._store.group_activity(element, group)
            transition = _transitions.evaluate(transitions, current)
            if transition is None:
                _logger.debug("%s: no transition from %s in group %s", element, current, group)
                return
            self._store.set_group_activity(element, group, transition.to_type)
            armed_type = transition.to_type
        else:
            activity_type = descriptor.activity_type
            assert isinstance(activity_type, str)  # noqa: S101
            if update.active:
                self._store.set_group_activity(element, group, activity_type)
                armed_type = activity_type
            else:
                self._store.clear_activity(element, activity_type)
                self._timeouts.cancel(element, activity_type)

        if armed_type is not None and descriptor.timeout is not None:
            self._timeouts.arm(element, armed_type, descriptor.timeout)
