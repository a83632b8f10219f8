"""Transient banners for checkout and operator feedback."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from apps.web.config import settings
from apps.web.core.scheduling import DelayedCall, Sleep

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    message: str
    level: NotificationLevel
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class Notifier:
    """
    Holds the single visible banner and dismisses it after a timeout.

    A newer banner replaces the current one and restarts the timer.
    """

    def __init__(
        self,
        timeout: float | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        on_change: Callable[[Notification | None], None] | None = None,
    ) -> None:
        self.timeout = settings.NOTIFICATION_TIMEOUT if timeout is None else timeout
        self.current: Notification | None = None
        self.history: list[Notification] = []
        self._on_change = on_change
        self._dismiss_timer = DelayedCall(
            self.dismiss, self.timeout, sleep=sleep, name="notification-dismiss"
        )

    def success(self, message: str) -> Notification:
        return self.show(message, NotificationLevel.SUCCESS)

    def error(self, message: str) -> Notification:
        return self.show(message, NotificationLevel.ERROR)

    def info(self, message: str) -> Notification:
        return self.show(message, NotificationLevel.INFO)

    def show(self, message: str, level: NotificationLevel) -> Notification:
        notification = Notification(message=message, level=level)
        self.current = notification
        self.history.append(notification)
        self._emit()
        try:
            self._dismiss_timer.start()
        except RuntimeError:
            # No running loop: keep the banner until dismissed explicitly.
            logger.debug("No event loop; banner %r will not auto-dismiss", message)
        return notification

    def dismiss(self) -> None:
        self._dismiss_timer.cancel()
        if self.current is None:
            return
        self.current = None
        self._emit()

    def _emit(self) -> None:
        if self._on_change is not None:
            self._on_change(self.current)
