"""Notification models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from schedle.time_helpers import format_datetime, parse_datetime


class NotificationType(str, Enum):
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPTED = "friend_accepted"
    EVENT_INVITE = "event_invite"
    EVENT_UPDATE = "event_update"
    SYSTEM = "system"


def category_of(kind: NotificationType) -> str:
    """Group a notification type into the tab it is listed under."""
    match kind:
        case NotificationType.FRIEND_REQUEST | NotificationType.FRIEND_ACCEPTED:
            return "friends"
        case NotificationType.EVENT_INVITE | NotificationType.EVENT_UPDATE:
            return "events"
        case NotificationType.SYSTEM:
            return "system"
    raise ValueError(f"unhandled notification type: {kind!r}")


@dataclass
class Notification:
    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    is_read: bool
    created_at: datetime
    related_id: Optional[str] = None

    @classmethod
    def from_record(cls, record: dict) -> "Notification":
        return cls(
            id=str(record["id"]),
            user_id=str(record["user_id"] if "user_id" in record else record["userId"]),
            title=record["title"],
            message=record["message"],
            type=NotificationType(record["type"]),
            is_read=bool(record.get("is_read", record.get("isRead", False))),
            created_at=parse_datetime(record.get("created_at", record.get("createdAt"))),
            related_id=record.get("related_id", record.get("relatedId")),
        )

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "type": self.type.value,
            "is_read": self.is_read,
            "created_at": format_datetime(self.created_at),
            "related_id": self.related_id,
        }

    @property
    def category(self) -> str:
        return category_of(self.type)
