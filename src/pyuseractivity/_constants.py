"""Internal constants shared across the library."""

SERVICE_PATH = "/user-activity"
USER_AGENT = "pyuseractivity"

#: Seconds between two polls when no new signal arrives.
POLLING_INTERVAL: float = 5.0

#: Seconds before an outbound poll request is abandoned.
REQUEST_TIMEOUT: float = 10.0

#: Bus event carrying the collaborators' activities after every poll.
#: Payload: ``[{"element": str, "activities": [{"user", "type", "timestamp"?}]}]``
USER_ACTIVITY_UPDATED = "user.activity.updated"
