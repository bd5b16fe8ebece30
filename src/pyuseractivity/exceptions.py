"""Custom exception hierarchy for pyuseractivity."""

from __future__ import annotations


class UserActivityError(Exception):
    """Base exception for all pyuseractivity errors."""


class UserActivityConfigError(UserActivityError):
    """Invalid or missing configuration."""


class UserActivityStateError(UserActivityError):
    """Service used outside its lifecycle (not entered, started twice, ...)."""


class UserActivityTransportError(UserActivityError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class UserActivityResponseError(UserActivityError):
    """Server replied with JSON that is not a list of element activities."""
