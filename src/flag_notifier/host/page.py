"""Host page signals.

The notifier runs inside a student page. The embedding application
forwards three page-level facts to it through a HostPage:

- visibility: whether the page is currently shown to the user
- unload: the page is going away
- navigation: where a notification click should take the user

Subscriptions return a disposer; calling it removes the callback.
Disposers are idempotent.
"""

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

Disposer = Callable[[], None]
VisibilityCallback = Callable[[bool], None]
UnloadCallback = Callable[[], None]


class HostPage:
    """Visibility, unload and navigation state of the host page.

    Usage:
        page = HostPage()
        dispose = page.on_visibility_change(lambda visible: ...)
        page.set_visible(False)   # callbacks receive False
        dispose()
    """

    def __init__(self, visible: bool = True, location: str = "/student"):
        self._visible = visible
        self.location = location
        self.unloaded = False
        self._visibility_callbacks: List[VisibilityCallback] = []
        self._unload_callbacks: List[UnloadCallback] = []

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def hidden(self) -> bool:
        return not self._visible

    def set_visible(self, visible: bool) -> None:
        """Record a visibility change and notify subscribers on a real transition."""
        if visible == self._visible:
            return
        self._visible = visible
        logger.debug(f"Page {'visible' if visible else 'hidden'}")
        for callback in list(self._visibility_callbacks):
            callback(visible)

    def on_visibility_change(self, callback: VisibilityCallback) -> Disposer:
        self._visibility_callbacks.append(callback)
        return self._disposer(self._visibility_callbacks, callback)

    def on_unload(self, callback: UnloadCallback) -> Disposer:
        self._unload_callbacks.append(callback)
        return self._disposer(self._unload_callbacks, callback)

    def unload(self) -> None:
        """Signal that the page is being torn down. Only the first call notifies."""
        if self.unloaded:
            return
        self.unloaded = True
        for callback in list(self._unload_callbacks):
            callback()

    def navigate(self, route: str) -> None:
        logger.info(f"Navigating to {route}")
        self.location = route

    @property
    def subscriber_count(self) -> int:
        return len(self._visibility_callbacks) + len(self._unload_callbacks)

    @staticmethod
    def _disposer(callbacks: List, callback: Callable) -> Disposer:
        disposed = False

        def dispose() -> None:
            nonlocal disposed
            if disposed:
                return
            disposed = True
            if callback in callbacks:
                callbacks.remove(callback)

        return dispose

