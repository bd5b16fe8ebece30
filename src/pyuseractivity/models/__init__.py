"""Data models for descriptors and the user activity wire format."""

from pyuseractivity.models._base import UserActivityBaseModel
from pyuseractivity.models.activity import ElementActivities, ElementActivity, UserActivityData
from pyuseractivity.models.descriptor import ActivePredicate, ActivityDescriptor, Transition

__all__ = [
    "ActivePredicate",
    "ActivityDescriptor",
    "ElementActivities",
    "ElementActivity",
    "Transition",
    "UserActivityBaseModel",
    "UserActivityData",
]
