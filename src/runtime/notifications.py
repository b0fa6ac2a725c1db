"""Fire-and-forget user notifications for session completion."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from session import format_duration_words

from .ui import RuntimeUIPublisher

COMPLETION_TITLE = "Flow Session Complete"


def completion_message(selected_duration: float) -> tuple[str, str]:
    """Return the `(title, body)` shown when a session runs to completion."""
    body = (
        "Great work! You completed a "
        f"{format_duration_words(selected_duration)} focus session."
    )
    return COMPLETION_TITLE, body


class NotifierLike(Protocol):
    def notify(self, title: str, body: str) -> None:
        ...


class LogNotifier:
    """Writes notifications to the log when no presentation consumer is attached."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("notifications")

    def notify(self, title: str, body: str) -> None:
        self._logger.info("%s: %s", title, body)


class UINotifier:
    """Delivers notifications to websocket clients as `notification` events."""

    def __init__(
        self,
        ui: RuntimeUIPublisher,
        logger: Optional[logging.Logger] = None,
    ):
        self._ui = ui
        self._logger = logger or logging.getLogger("notifications")

    def notify(self, title: str, body: str) -> None:
        self._logger.info("%s: %s", title, body)
        self._ui.publish_notification(title, body)
