# File: exceptions.py
"""Typed errors raised by the Breathwork integration.

Pure engines raise OutOfRangeError / MalformedRecord synchronously. The
remote store adapter raises NetworkUnavailable / RemoteStoreError. Managers
decide whether an error degrades to the local cache or reaches the caller.

All errors derive from HomeAssistantError so a service call that surfaces one
is reported to the user instead of logged as an unexpected exception.
"""

from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError

from . import const


class BreathworkError(HomeAssistantError):
    """Base class for Breathwork errors."""


class NetworkUnavailable(BreathworkError):
    """Remote store could not be reached.

    Attributes:
        error_type: One of const.ERROR_TYPE_NETWORK / TIMEOUT / SERVER
        retryable: Whether another attempt may succeed
    """

    def __init__(
        self,
        message: str,
        error_type: str = const.ERROR_TYPE_NETWORK,
        retryable: bool = True,
    ) -> None:
        """Initialize NetworkUnavailable."""
        super().__init__(message)
        self.error_type = error_type
        self.retryable = retryable


class RemoteStoreError(BreathworkError):
    """Remote store answered with a non-retryable error (auth, bad request)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        """Initialize RemoteStoreError."""
        super().__init__(message)
        self.status = status


class OutOfRangeError(BreathworkError):
    """Day number or session key is outside the program's track."""


class DayLockedError(BreathworkError):
    """A completion was requested for a day or session that is still locked."""


class ProgramNotFound(BreathworkError):
    """The user has no active program to complete sessions in."""


class QuotaExceeded(BreathworkError):
    """Monthly reset allowance is used up.

    Attributes:
        remaining_resets: Always 0 for a denied reset
    """

    def __init__(self, remaining_resets: int = 0) -> None:
        """Initialize QuotaExceeded."""
        super().__init__(
            f"Monthly reset limit of {const.MAX_MONTHLY_RESETS} reached, "
            f"remaining resets: {remaining_resets}"
        )
        self.remaining_resets = remaining_resets


class MalformedRecord(BreathworkError):
    """A stored record is missing a required field or has the wrong shape."""


def is_retryable(err: BaseException) -> bool:
    """Return True if err is a transient remote failure worth retrying."""
    return isinstance(err, NetworkUnavailable) and err.retryable
