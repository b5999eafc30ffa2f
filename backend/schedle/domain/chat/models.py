"""Domain models for direct messages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

from schedle.time_helpers import format_datetime, parse_datetime


@dataclass(slots=True)
class ConversationKey:
	"""Canonical representation of a 1:1 conversation."""

	user_a: str
	user_b: str

	@classmethod
	def from_participants(cls, user_one: str, user_two: str) -> "ConversationKey":
		ordered = tuple(sorted((str(user_one), str(user_two))))
		return cls(user_a=ordered[0], user_b=ordered[1])

	@property
	def conversation_id(self) -> str:
		return f"chat:{self.user_a}:{self.user_b}"

	def participants(self) -> Tuple[str, str]:
		return (self.user_a, self.user_b)


@dataclass(slots=True)
class Message:
	id: str
	sender_id: str
	receiver_id: str
	content: str
	timestamp: datetime

	@classmethod
	def from_record(cls, record: dict) -> "Message":
		return cls(
			id=str(record["id"]),
			sender_id=str(record["sender_id"] if "sender_id" in record else record["senderId"]),
			receiver_id=str(record["receiver_id"] if "receiver_id" in record else record["receiverId"]),
			content=record["content"],
			timestamp=parse_datetime(record["timestamp"]),
		)

	def to_record(self) -> dict:
		return {
			"id": self.id,
			"sender_id": self.sender_id,
			"receiver_id": self.receiver_id,
			"content": self.content,
			"timestamp": format_datetime(self.timestamp),
		}

	@property
	def conversation(self) -> ConversationKey:
		return ConversationKey.from_participants(self.sender_id, self.receiver_id)
