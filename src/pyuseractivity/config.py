"""Client configuration for pyuseractivity."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyuseractivity._constants import POLLING_INTERVAL, REQUEST_TIMEOUT, SERVICE_PATH, USER_AGENT
from pyuseractivity.exceptions import UserActivityConfigError


@dataclasses.dataclass(frozen=True)
class UserActivityConfig:
    """Service configuration.

    Parameters
    ----------
    service_url : str
        Base URL of the user activity service. Polls are posted to
        ``{service_url}/user-activity``.
    polling_interval : float
        Seconds between two polls while no new signal arrives.
    request_timeout : float
        Total timeout in seconds for a single poll request.
    user_agent : str
        ``User-Agent`` header sent with every poll.
    """

    service_url: str
    polling_interval: float = POLLING_INTERVAL
    request_timeout: float = REQUEST_TIMEOUT
    user_agent: str = USER_AGENT

    def __post_init__(self) -> None:
        if not self.service_url or not self.service_url.strip():
            raise UserActivityConfigError("service_url must be non-empty")
        if self.polling_interval <= 0:
            raise UserActivityConfigError(f"polling_interval must be positive, got {self.polling_interval}")
        if self.request_timeout <= 0:
            raise UserActivityConfigError(f"request_timeout must be positive, got {self.request_timeout}")

    @property
    def poll_url(self) -> str:
        """Absolute URL the activity snapshot is posted to."""
        return f"{self.service_url.rstrip('/')}{SERVICE_PATH}"

    @classmethod
    def from_env(cls, **overrides: Any) -> UserActivityConfig:
        """Create configuration from environment variables.

        Reads ``USER_ACTIVITY_SERVICE_URL`` and the optional
        ``USER_ACTIVITY_POLLING_INTERVAL`` / ``USER_ACTIVITY_REQUEST_TIMEOUT``.
        Explicit keyword arguments override environment values.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}
        url = env.get("USER_ACTIVITY_SERVICE_URL")
        if url is not None:
            config_kwargs["service_url"] = url

        _ENV_FLOAT_MAP = {
            "USER_ACTIVITY_POLLING_INTERVAL": "polling_interval",
            "USER_ACTIVITY_REQUEST_TIMEOUT": "request_timeout",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(val)
            except ValueError as exc:
                raise UserActivityConfigError(f"{env_key} must be a number, got {val!r}") from exc

        config_kwargs.update(overrides)
        if "service_url" not in config_kwargs:
            raise UserActivityConfigError("USER_ACTIVITY_SERVICE_URL is not set")

        return cls(**config_kwargs)
