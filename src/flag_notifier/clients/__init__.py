"""HTTP clients for the course assistant backend."""

from flag_notifier.clients.base import BaseServiceClient
from flag_notifier.clients.flags_client import FlagsClient

__all__ = ["BaseServiceClient", "FlagsClient"]
