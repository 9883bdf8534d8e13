"""
Stacked, auto-dismissing notifications.

NotificationStack is the on-page surface: it keeps the notifications that
are currently mounted, computes where each new one goes, and drives the
enter/exit animation phases on the running event loop.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from flag_notifier.utils.timestamps import utc_now

logger = logging.getLogger(__name__)


class NotificationSeverity(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


SEVERITY_ICONS: Dict[NotificationSeverity, str] = {
    NotificationSeverity.SUCCESS: "✓",
    NotificationSeverity.INFO: "ℹ",
    NotificationSeverity.WARNING: "⚠",
    NotificationSeverity.ERROR: "✕",
}

SEVERITY_COLORS: Dict[NotificationSeverity, str] = {
    NotificationSeverity.SUCCESS: "#10b981",
    NotificationSeverity.INFO: "#3b82f6",
    NotificationSeverity.WARNING: "#f59e0b",
    NotificationSeverity.ERROR: "#ef4444",
}

CLICK_TITLE = "Click to view details"


class NotificationPhase(str, Enum):
    """Animation phase of a mounted notification"""

    ENTERING = "entering"  # slide-in running
    VISIBLE = "visible"
    EXITING = "exiting"  # slide-out running, still mounted
    REMOVED = "removed"


@dataclass
class Notification:
    """One mounted notification element."""

    notification_id: int
    message: str
    severity: NotificationSeverity
    top_offset: int
    duration: float
    on_click: Optional[Callable[[], None]] = None
    phase: NotificationPhase = NotificationPhase.ENTERING
    created_at: datetime = field(default_factory=utc_now)
    _timers: List[asyncio.TimerHandle] = field(default_factory=list, repr=False, compare=False)

    @property
    def icon(self) -> str:
        return SEVERITY_ICONS.get(self.severity, SEVERITY_ICONS[NotificationSeverity.INFO])

    @property
    def color(self) -> str:
        return SEVERITY_COLORS.get(self.severity, SEVERITY_COLORS[NotificationSeverity.INFO])

    @property
    def clickable(self) -> bool:
        return self.on_click is not None

    @property
    def title(self) -> Optional[str]:
        return CLICK_TITLE if self.clickable else None

    @property
    def mounted(self) -> bool:
        return self.phase != NotificationPhase.REMOVED

    def click(self) -> bool:
        """Run the click handler.

        Returns:
            True if a handler ran
        """
        if self.on_click is None or not self.mounted:
            return False
        self.on_click()
        return True


class NotificationStack:
    """Mounted notifications, stacked top to bottom.

    A new notification is placed below every notification still mounted,
    including ones that are sliding out. After ``duration`` seconds it
    starts its exit animation and is unmounted ``animation_seconds``
    later. Removal is idempotent, so a user dismissal racing the timer
    is harmless.
    """

    def __init__(
        self,
        base_offset: int = 20,
        spacing: int = 80,
        animation_seconds: float = 0.3,
    ):
        self.base_offset = base_offset
        self.spacing = spacing
        self.animation_seconds = animation_seconds
        self._mounted: List[Notification] = []
        self._ids = itertools.count(1)

    @property
    def notifications(self) -> List[Notification]:
        """Currently mounted notifications, oldest first."""
        return list(self._mounted)

    def __len__(self) -> int:
        return len(self._mounted)

    def next_offset(self) -> int:
        return self.base_offset + len(self._mounted) * self.spacing

    def show(
        self,
        message: str,
        severity: NotificationSeverity = NotificationSeverity.INFO,
        duration: float = 8.0,
        on_click: Optional[Callable[[], None]] = None,
    ) -> Notification:
        """Mount a notification and schedule its automatic removal.

        Must be called from a running event loop.

        Args:
            message: Text shown to the user
            severity: Selects icon and color
            duration: Seconds before the exit animation starts
            on_click: Optional click handler

        Returns:
            The mounted notification
        """
        loop = asyncio.get_running_loop()

        notification = Notification(
            notification_id=next(self._ids),
            message=message,
            severity=severity,
            top_offset=self.next_offset(),
            duration=duration,
            on_click=on_click,
        )
        self._mounted.append(notification)

        notification._timers.append(
            loop.call_later(self.animation_seconds, self._finish_enter, notification)
        )
        notification._timers.append(loop.call_later(duration, self._begin_exit, notification))

        logger.info(
            f"[Notifications] Showing {severity.value} notification #{notification.notification_id} "
            f"at {notification.top_offset}px: {message}"
        )
        return notification

    def _finish_enter(self, notification: Notification) -> None:
        if notification.phase == NotificationPhase.ENTERING:
            notification.phase = NotificationPhase.VISIBLE

    def _begin_exit(self, notification: Notification) -> None:
        if not notification.mounted:
            return
        notification.phase = NotificationPhase.EXITING
        loop = asyncio.get_running_loop()
        notification._timers.append(
            loop.call_later(self.animation_seconds, self.remove, notification)
        )

    def remove(self, notification: Notification) -> bool:
        """Unmount a notification.

        Returns:
            False if it was already removed
        """
        if not notification.mounted:
            return False
        notification.phase = NotificationPhase.REMOVED
        for handle in notification._timers:
            handle.cancel()
        notification._timers.clear()
        if notification in self._mounted:
            self._mounted.remove(notification)
        logger.debug(f"[Notifications] Removed notification #{notification.notification_id}")
        return True

    def dismiss(self, notification: Notification) -> bool:
        """User-initiated removal, skipping the exit animation."""
        return self.remove(notification)

    def clear(self) -> None:
        for notification in list(self._mounted):
            self.remove(notification)
