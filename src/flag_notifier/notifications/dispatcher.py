"""Turns change events into on-page notifications."""

import logging
from typing import Callable, Dict, Optional

from flag_notifier.models import ChangeEvent, ChangeKind
from flag_notifier.notifications.stack import Notification, NotificationSeverity, NotificationStack

logger = logging.getLogger(__name__)

MESSAGE_TEMPLATES: Dict[ChangeKind, str] = {
    ChangeKind.STATUS_RESOLVED: "Your flag has been approved by {responder}. Click to view details.",
    ChangeKind.STATUS_DISMISSED: "Your flag has been dismissed by {responder}.",
    ChangeKind.RESPONSE_ADDED: "{responder} responded to your flag. Click to view their response.",
    ChangeKind.RESPONSE_UPDATED: "{responder} updated their response to your flag. Click to view.",
}


def build_message(event: ChangeEvent) -> str:
    return MESSAGE_TEMPLATES[event.kind].format(responder=event.responder_name)


def severity_for(event: ChangeEvent) -> NotificationSeverity:
    if event.kind == ChangeKind.STATUS_DISMISSED:
        return NotificationSeverity.INFO
    return NotificationSeverity.SUCCESS


class NotificationDispatcher:
    """Renders one notification per change event.

    Clicking a notification navigates to the review route, when a
    navigator is configured.

    Usage:
        dispatcher = NotificationDispatcher(stack, navigator=page.navigate)
        dispatcher.dispatch(event)
    """

    def __init__(
        self,
        stack: NotificationStack,
        navigator: Optional[Callable[[str], None]] = None,
        review_route: str = "/student/flagged",
        status_duration: float = 8.0,
        response_duration: float = 12.0,
    ):
        """Initialize dispatcher.

        Args:
            stack: Surface notifications are mounted on
            navigator: Called with the review route when a notification is clicked
            review_route: The student's flags review page
            status_duration: Seconds a status notification stays up
            response_duration: Seconds a response notification stays up (more to read)
        """
        self.stack = stack
        self.navigator = navigator
        self.review_route = review_route
        self.status_duration = status_duration
        self.response_duration = response_duration

    def _open_review(self) -> None:
        if self.navigator is not None:
            self.navigator(self.review_route)

    def dispatch(self, event: ChangeEvent) -> Notification:
        duration = self.response_duration if event.kind.is_response else self.status_duration
        notification = self.stack.show(
            build_message(event),
            severity=severity_for(event),
            duration=duration,
            on_click=self._open_review if self.navigator is not None else None,
        )
        logger.info(f"[Notifications] Flag {event.kind.value}: {event.flag_id}")
        return notification
