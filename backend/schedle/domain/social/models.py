"""Domain models for friend requests and friendships."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from schedle.time_helpers import format_datetime, parse_optional_datetime, utcnow


class FriendStatus(str, Enum):
	"""Statuses a friend record can hold.

	``declined`` is only ever read from older stored data; declining a request
	deletes the record.
	"""

	PENDING = "pending"
	ACCEPTED = "accepted"
	DECLINED = "declined"


OPEN_STATUSES = frozenset({FriendStatus.PENDING, FriendStatus.ACCEPTED})


@dataclass(slots=True)
class FriendRecord:
	"""A directional request between two users.

	``added_by`` is always the sender and ``to_user_id`` the receiver, for the
	whole life of the record. Display fields are joined from the user directory.
	"""

	id: str
	added_by: str
	to_user_id: str
	status: FriendStatus
	created_at: datetime

	@classmethod
	def from_record(cls, record: dict) -> "FriendRecord":
		added_by = record["added_by"] if "added_by" in record else record["addedBy"]
		to_user_id = record["to_user_id"] if "to_user_id" in record else record["toUserId"]
		created_at = parse_optional_datetime(record.get("created_at", record.get("createdAt")))
		return cls(
			id=str(record["id"]),
			added_by=str(added_by),
			to_user_id=str(to_user_id),
			status=FriendStatus(record["status"]),
			created_at=created_at or utcnow(),
		)

	def to_record(self) -> dict:
		return {
			"id": self.id,
			"added_by": self.added_by,
			"to_user_id": self.to_user_id,
			"status": self.status.value,
			"created_at": format_datetime(self.created_at),
		}

	@property
	def is_open(self) -> bool:
		return self.status in OPEN_STATUSES

	def involves(self, user_id: str) -> bool:
		return user_id in (self.added_by, self.to_user_id)

	def connects(self, user_a: str, user_b: str) -> bool:
		return {self.added_by, self.to_user_id} == {str(user_a), str(user_b)}

	def other_side(self, user_id: str) -> str:
		return self.to_user_id if self.added_by == user_id else self.added_by
