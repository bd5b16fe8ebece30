"""Push the local snapshot to the user activity service and broadcast the reply."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import TypeAdapter, ValidationError

from pyuseractivity._constants import USER_ACTIVITY_UPDATED
from pyuseractivity._transport import Transport
from pyuseractivity.bus import MessageBus
from pyuseractivity.exceptions import UserActivityResponseError
from pyuseractivity.models.activity import ElementActivities, ElementActivity

_logger = logging.getLogger(__name__)

_RESPONSE_ADAPTER: TypeAdapter[list[ElementActivity]] = TypeAdapter(list[ElementActivity])


def parse_collaborator_activity(body: Any) -> list[ElementActivity]:
    """Validate a poll reply and sort every element's activities by timestamp."""
    try:
        parsed = _RESPONSE_ADAPTER.validate_python(body)
    except ValidationError as exc:
        raise UserActivityResponseError(f"Unexpected user activity response: {exc}") from exc
    return [element.sorted_by_timestamp() for element in parsed]


class UserActivitySync:
    """Poll the remote endpoint and republish its answer on the bus.

    Polls may overlap when the service is slow. Each poll takes a sequence
    number when issued; a reply is broadcast only if no later poll has
    been broadcast already, so subscribers never go back to older data.
    """

    def __init__(self, transport: Transport, bus: MessageBus, url: str) -> None:
        self._transport = transport
        self._bus = bus
        self._url = url
        self._issued = 0
        self._delivered = 0

    async def poll(self, snapshot: Sequence[ElementActivities]) -> list[ElementActivity] | None:
        """Send *snapshot*, broadcast and return the collaborators' activities.

        Returns ``None`` when the reply was superseded by a newer poll.
        Transport and response errors propagate to the caller.
        """
        self._issued += 1
        sequence = self._issued
        body = [entry.model_dump() for entry in snapshot]
        _logger.debug("Poll #%d: %d element(s) with local activity", sequence, len(body))

        response = await self._transport.post_json(self._url, body)
        activities = parse_collaborator_activity(response)

        if sequence < self._delivered:
            _logger.debug("Dropping reply to poll #%d, #%d already delivered", sequence, self._delivered)
            return None
        self._delivered = sequence
        self.broadcast(activities)
        return activities

    def broadcast(self, activities: Sequence[ElementActivity]) -> None:
        payload = [element.model_dump(exclude_none=True) for element in activities]
        self._bus.publish(USER_ACTIVITY_UPDATED, payload)
