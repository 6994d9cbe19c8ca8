"""Client notification views: an ordered list and a single toast slot."""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from services.coordination.src.coordination.client.normalize import NotificationRecord
from services.coordination.src.coordination.core.clock import utcnow

logger = logging.getLogger(__name__)


class NotificationStore:
    """Most-recent-first list of notifications.

    Reading a notification removes it; there is no read-but-kept state,
    so ``mark_as_read`` and ``remove`` do the same thing.
    """

    def __init__(self):
        self._records: list[NotificationRecord] = []

    def list(self) -> list[NotificationRecord]:
        return list(self._records)

    @property
    def unread_count(self) -> int:
        return sum(1 for r in self._records if not r.read)

    def add(self, record: NotificationRecord) -> None:
        self._records.insert(0, record)

    def remove(self, notification_id: str) -> int:
        """Drop every record with this id. Returns how many were dropped."""
        before = len(self._records)
        self._records = [r for r in self._records if r.id != notification_id]
        removed = before - len(self._records)
        if not removed:
            logger.debug("notification_not_found", extra={"notification_id": notification_id})
        return removed

    def mark_as_read(self, notification_id: str) -> int:
        return self.remove(notification_id)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


@dataclass
class Toast:
    message: str
    severity: str = "info"
    shown_at: datetime = field(default_factory=utcnow)


class ToastSlot:
    """Holds at most one toast. A new toast replaces the current one."""

    def __init__(self):
        self._current: Toast | None = None

    @property
    def current(self) -> Toast | None:
        return self._current

    def show(self, message: str, severity: str = "info") -> Toast:
        self._current = Toast(message=message, severity=severity)
        return self._current

    def hide(self) -> None:
        self._current = None
