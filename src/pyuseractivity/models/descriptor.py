"""Activity descriptors: which bus signals mean which activity.

A descriptor is immutable configuration handed to
:meth:`pyuseractivity.service.UserActivityService.start`. Each one binds a
bus event name to an activity type (or a list of transitions), tells where
the element id lives in the payload, and whether receiving the event
activates or deactivates the activity.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ConfigDict, Field, PositiveFloat, field_validator

from pyuseractivity.models._base import UserActivityBaseModel

ActivePredicate = Callable[[Mapping[str, Any]], bool]


class Transition(UserActivityBaseModel):
    """Swap the active type of a group from ``from`` to ``to``.

    A transition without ``from`` only applies while the group is empty.
    """

    model_config = ConfigDict(extra="forbid")

    from_type: str | None = Field(default=None, alias="from")
    to_type: str = Field(..., alias="to")

    @field_validator("to_type")
    @classmethod
    def _to_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("transition target must be non-empty")
        return value


class ActivityDescriptor(UserActivityBaseModel):
    """Configuration of one activity signal.

    Parameters
    ----------
    name : str
        Bus event name to subscribe to.
    element_key : str
        Payload key (or dotted path into nested mappings) holding the element id.
    activity_type : str or sequence of Transition
        Plain activity type, or transitions evaluated against the group state.
    active : bool or callable
        Literal flag, or a predicate evaluated against the payload.
    timeout : float or None
        Seconds after which an activation expires unless re-armed.
    group : str or None
        Mutual exclusion group. Plain types default to the type itself,
        transition lists to the descriptor name.
    rename_to_element_key : str or None
        Payload key holding the element's new id; the element's activities
        move there before the update is applied.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    element_key: str
    activity_type: str | tuple[Transition, ...]
    active: bool | ActivePredicate = True
    timeout: PositiveFloat | None = None
    group: str | None = None
    rename_to_element_key: str | None = None

    @field_validator("name", "element_key")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must be non-empty")
        return value

    @field_validator("activity_type")
    @classmethod
    def _activity_type_non_empty(cls, value: str | tuple[Transition, ...]) -> str | tuple[Transition, ...]:
        if not value:
            raise ValueError("activity_type must be a non-empty type or transition list")
        return value

    @property
    def transitions(self) -> tuple[Transition, ...] | None:
        if isinstance(self.activity_type, tuple):
            return self.activity_type
        return None

    @property
    def effective_group(self) -> str:
        """Group the descriptor's activations live in."""
        if self.group:
            return self.group
        if isinstance(self.activity_type, str):
            return self.activity_type
        return self.name

    def resolve_active(self, payload: Mapping[str, Any]) -> bool:
        """Evaluate :attr:`active` for *payload*."""
        if isinstance(self.active, bool):
            return self.active
        return bool(self.active(payload))
