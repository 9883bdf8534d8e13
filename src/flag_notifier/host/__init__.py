"""Host page integration."""

from flag_notifier.host.page import Disposer, HostPage

__all__ = ["Disposer", "HostPage"]
