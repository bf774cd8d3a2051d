"""User-facing status channel.

Toast-style notifications (info, loading, success, error, dismiss) keyed by
an optional id so a later notification can replace an earlier one, e.g. the
``stage`` toast advancing through the bridge stages. Presentation subscribes;
the core only publishes.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    INFO = "info"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"
    DISMISS = "dismiss"


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    message: str = ""
    toast_id: Optional[str] = None


Subscriber = Callable[[Notification], None]

_LOG_LEVELS = {
    NotificationKind.INFO: logging.INFO,
    NotificationKind.LOADING: logging.INFO,
    NotificationKind.SUCCESS: logging.INFO,
    NotificationKind.ERROR: logging.WARNING,
    NotificationKind.DISMISS: logging.DEBUG,
}


class StatusChannel:
    """Fan-out of notifications to subscribers.

    Once closed, notifications are dropped so nothing reaches a torn-down
    presentation layer.
    """

    def __init__(self):
        self._subscribers: list[Subscriber] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a subscriber. Returns an unsubscribe callable."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, notification: Notification) -> None:
        if self._closed:
            logger.debug(f"Dropped notification after close: {notification}")
            return

        logger.log(
            _LOG_LEVELS[notification.kind],
            f"[{notification.kind.value}] {notification.message}"
            + (f" (id={notification.toast_id})" if notification.toast_id else ""),
        )
        for subscriber in list(self._subscribers):
            try:
                subscriber(notification)
            except Exception as e:
                logger.error(f"Notification subscriber failed: {e}")

    def info(self, message: str, toast_id: Optional[str] = None) -> None:
        self.publish(Notification(NotificationKind.INFO, message, toast_id))

    def loading(self, message: str, toast_id: Optional[str] = None) -> None:
        self.publish(Notification(NotificationKind.LOADING, message, toast_id))

    def success(self, message: str, toast_id: Optional[str] = None) -> None:
        self.publish(Notification(NotificationKind.SUCCESS, message, toast_id))

    def error(self, message: str, toast_id: Optional[str] = None) -> None:
        self.publish(Notification(NotificationKind.ERROR, message, toast_id))

    def dismiss(self, toast_id: str) -> None:
        self.publish(Notification(NotificationKind.DISMISS, "", toast_id))

    def close(self) -> None:
        self._closed = True
        self._subscribers.clear()
