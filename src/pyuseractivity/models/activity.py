"""Wire models for the ``/user-activity`` endpoint."""

from __future__ import annotations

from pydantic import Field

from pyuseractivity.models._base import UserActivityBaseModel


class ElementActivities(UserActivityBaseModel):
    """Local activities on one element, as sent with every poll."""

    element: str
    activities: list[str] = Field(default_factory=list)


class UserActivityData(UserActivityBaseModel):
    """One collaborator's activity on an element."""

    user: str
    type: str
    timestamp: int | float | None = None


class ElementActivity(UserActivityBaseModel):
    """All collaborator activities reported for one element."""

    element: str
    activities: list[UserActivityData] = Field(default_factory=list)

    def sorted_by_timestamp(self) -> ElementActivity:
        """Return a copy with activities in ascending timestamp order.

        Records without a timestamp sort first; ties keep server order.
        """
        ordered = sorted(
            self.activities,
            key=lambda item: (item.timestamp is not None, item.timestamp or 0),
        )
        return self.model_copy(update={"activities": ordered})
