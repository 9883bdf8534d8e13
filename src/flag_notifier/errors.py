"""Error taxonomy for the flag notifier.

All of these are recovered locally by the poll engine. A failed cycle
means a missed notification, never a crashed host page.
"""

from typing import Optional


class FlagNotifierError(Exception):
    """Base class for flag notifier errors."""


class NetworkError(FlagNotifierError):
    """The flags endpoint could not be reached or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(FlagNotifierError):
    """The flags endpoint answered, but not with a valid success envelope."""


class PersistenceError(FlagNotifierError):
    """The local key-value store could not be read, written or parsed."""
