"""pyuseractivity - Async aggregation and synchronization of collaborator activity."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyuseractivity")
except PackageNotFoundError:
    __version__ = "0+local"
from pyuseractivity._constants import POLLING_INTERVAL, USER_ACTIVITY_UPDATED
from pyuseractivity._transport import HttpTransport, Transport
from pyuseractivity.bus import LocalMessageBus, MessageBus, Subscription
from pyuseractivity.config import UserActivityConfig
from pyuseractivity.exceptions import (
    UserActivityConfigError,
    UserActivityError,
    UserActivityResponseError,
    UserActivityStateError,
    UserActivityTransportError,
)
from pyuseractivity.models import (
    ActivityDescriptor,
    ElementActivities,
    ElementActivity,
    Transition,
    UserActivityData,
)
from pyuseractivity.service import UserActivityService

__all__ = [
    "__version__",
    "POLLING_INTERVAL",
    "USER_ACTIVITY_UPDATED",
    "ActivityDescriptor",
    "ElementActivities",
    "ElementActivity",
    "HttpTransport",
    "LocalMessageBus",
    "MessageBus",
    "Subscription",
    "Transition",
    "Transport",
    "UserActivityConfig",
    "UserActivityConfigError",
    "UserActivityData",
    "UserActivityError",
    "UserActivityResponseError",
    "UserActivityService",
    "UserActivityStateError",
    "UserActivityTransportError",
]
