"""Notification center for the active user.

Notifications are kept newest first. Delivery to another user goes straight to
that user's stored partition; the active user's list is updated in memory and
written through.
"""

from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from schedle.domain.notifications.models import Notification, NotificationType
from schedle.infra.storage import StorageKind, UserStorage, load_collection, save_collection
from schedle.obs import metrics as obs_metrics
from schedle.settings import settings
from schedle.time_helpers import utcnow

logger = logging.getLogger(__name__)


class NotificationCenter:
    def __init__(self, user_id: str, *, storage: UserStorage) -> None:
        self._user_id = user_id
        self._storage = storage
        self._notifications: List[Notification] = load_collection(
            storage, user_id, StorageKind.NOTIFICATIONS, Notification.from_record
        )

    @property
    def notifications(self) -> List[Notification]:
        return list(self._notifications)

    @property
    def unread_count(self) -> int:
        return sum(1 for notif in self._notifications if not notif.is_read)

    def recent(self, limit: Optional[int] = None) -> List[Notification]:
        size = settings.recent_notifications_limit if limit is None else limit
        return self._notifications[: max(0, size)]

    def add_notification(
        self,
        *,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
        related_id: Optional[str] = None,
    ) -> Notification:
        notif = Notification(
            id=str(uuid.uuid4()),
            user_id=str(user_id),
            title=title,
            message=message,
            type=NotificationType(type),
            is_read=False,
            created_at=utcnow(),
            related_id=related_id,
        )
        if notif.user_id == self._user_id:
            self._notifications.insert(0, notif)
            self._flush()
        else:
            inbox = load_collection(self._storage, notif.user_id, StorageKind.NOTIFICATIONS, Notification.from_record)
            inbox.insert(0, notif)
            save_collection(self._storage, notif.user_id, StorageKind.NOTIFICATIONS, inbox)
        obs_metrics.inc_notification_created(notif.type.value)
        logger.info(
            "notification_created",
            extra={"recipient_id": notif.user_id, "type": notif.type.value, "related_id": related_id},
        )
        return notif

    def mark_notification_as_read(self, notification_id: str) -> bool:
        """Mark one notification read; returns False when it does not exist."""
        for notif in self._notifications:
            if notif.id == notification_id:
                if not notif.is_read:
                    notif.is_read = True
                    self._flush()
                return True
        return False

    def mark_all_as_read(self) -> int:
        changed = 0
        for notif in self._notifications:
            if not notif.is_read:
                notif.is_read = True
                changed += 1
        if changed:
            self._flush()
        return changed

    def clear_notifications(self) -> None:
        self._notifications = []
        self._flush()

    def _flush(self) -> None:
        save_collection(self._storage, self._user_id, StorageKind.NOTIFICATIONS, self._notifications)
