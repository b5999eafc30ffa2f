"""Domain models for calendar events, filters and groups."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import List, Optional, Tuple

from schedle.time_helpers import format_datetime, parse_datetime, parse_optional_datetime

DEFAULT_COLOR = "#4f46e5"


class EventType(str, Enum):
	PERSONAL = "personal"
	FRIEND = "friend"
	GROUP = "group"
	WORK = "work"


class RecurrenceFrequency(str, Enum):
	DAILY = "daily"
	WEEKLY = "weekly"
	MONTHLY = "monthly"
	YEARLY = "yearly"


VIEW_MODES = ("month", "week", "day", "custom")


@dataclass(slots=True, frozen=True)
class Recurrence:
	frequency: RecurrenceFrequency
	until: Optional[datetime] = None

	@classmethod
	def from_record(cls, record: dict) -> "Recurrence":
		return cls(
			frequency=RecurrenceFrequency(record["frequency"]),
			until=parse_optional_datetime(record.get("until")),
		)

	def to_record(self) -> dict:
		return {"frequency": self.frequency.value, "until": format_datetime(self.until)}

	def matches(self, first: date, candidate: date) -> bool:
		"""Whether an occurrence starts on ``candidate`` given the first one on ``first``."""
		if candidate < first:
			return False
		if self.until is not None and candidate > self.until.date():
			return False
		match self.frequency:
			case RecurrenceFrequency.DAILY:
				return True
			case RecurrenceFrequency.WEEKLY:
				return (candidate - first).days % 7 == 0
			case RecurrenceFrequency.MONTHLY:
				return candidate.day == first.day
			case RecurrenceFrequency.YEARLY:
				return (candidate.month, candidate.day) == (first.month, first.day)
		raise ValueError(f"unhandled frequency: {self.frequency!r}")


@dataclass(slots=True, frozen=True)
class CalendarFilters:
	show_personal_events: bool = True
	show_friend_events: bool = True
	show_work_events: bool = True

	def allows(self, kind: EventType) -> bool:
		match kind:
			case EventType.PERSONAL:
				return self.show_personal_events
			case EventType.FRIEND | EventType.GROUP:
				return self.show_friend_events
			case EventType.WORK:
				return self.show_work_events
		raise ValueError(f"unhandled event type: {kind!r}")


@dataclass(slots=True)
class CalendarEvent:
	id: str
	title: str
	start: datetime
	end: datetime
	type: EventType
	created_by: str
	color: str = DEFAULT_COLOR
	description: Optional[str] = None
	location: Optional[str] = None
	is_multi_day: bool = False
	participants: Tuple[str, ...] = ()
	group_id: Optional[str] = None
	recurring: Optional[Recurrence] = None

	@classmethod
	def from_record(cls, record: dict) -> "CalendarEvent":
		recurring = record.get("recurring")
		return cls(
			id=str(record["id"]),
			title=record["title"],
			start=parse_datetime(record["start"]),
			end=parse_datetime(record["end"]),
			type=EventType(record["type"]),
			created_by=str(record["created_by"] if "created_by" in record else record["createdBy"]),
			color=record.get("color") or DEFAULT_COLOR,
			description=record.get("description"),
			location=record.get("location"),
			is_multi_day=bool(record.get("is_multi_day", record.get("isMultiDay", False))),
			participants=tuple(_participant_id(item) for item in record.get("participants") or ()),
			group_id=record.get("group_id", record.get("groupId")),
			recurring=Recurrence.from_record(recurring) if recurring else None,
		)

	def to_record(self) -> dict:
		return {
			"id": self.id,
			"title": self.title,
			"start": format_datetime(self.start),
			"end": format_datetime(self.end),
			"type": self.type.value,
			"created_by": self.created_by,
			"color": self.color,
			"description": self.description,
			"location": self.location,
			"is_multi_day": self.is_multi_day,
			"participants": list(self.participants),
			"group_id": self.group_id,
			"recurring": self.recurring.to_record() if self.recurring else None,
		}

	def occurs_on(self, day: date) -> bool:
		"""Whether any occurrence of the event overlaps the calendar day ``day``."""
		first = self.start.date()
		span_days = (self.end.date() - first).days
		if self.recurring is None:
			return first <= day <= self.end.date()
		for offset in range(span_days + 1):
			if self.recurring.matches(first, day - timedelta(days=offset)):
				return True
		return False


def _participant_id(value: object) -> str:
	# Older data stored whole user objects.
	if isinstance(value, dict):
		return str(value["id"])
	return str(value)


@dataclass(slots=True)
class Group:
	id: str
	name: str
	member_ids: List[str] = field(default_factory=list)
	avatar: Optional[str] = None

	@classmethod
	def from_record(cls, record: dict) -> "Group":
		members = record.get("member_ids", record.get("members")) or []
		return cls(
			id=str(record["id"]),
			name=record["name"],
			member_ids=[_participant_id(item) for item in members],
			avatar=record.get("avatar"),
		)

	def to_record(self) -> dict:
		return {
			"id": self.id,
			"name": self.name,
			"member_ids": list(self.member_ids),
			"avatar": self.avatar,
		}
