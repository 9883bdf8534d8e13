"""On-page notifications for flag changes."""

from flag_notifier.notifications.dispatcher import (
    MESSAGE_TEMPLATES,
    NotificationDispatcher,
    build_message,
)
from flag_notifier.notifications.stack import (
    Notification,
    NotificationPhase,
    NotificationSeverity,
    NotificationStack,
)

__all__ = [
    "MESSAGE_TEMPLATES",
    "NotificationDispatcher",
    "build_message",
    "Notification",
    "NotificationPhase",
    "NotificationSeverity",
    "NotificationStack",
]
