"""Domain-level exceptions for calendar events and groups."""

from __future__ import annotations

from schedle.domain.common.errors import SchedleError


class CalendarError(SchedleError):
	reason = "calendar_error"


class EventNotFound(CalendarError):
	reason = "event_not_found"


class InvalidEvent(CalendarError):
	reason = "invalid_event"


class GroupNotFound(CalendarError):
	reason = "group_not_found"


class InvalidGroup(CalendarError):
	reason = "invalid_group"
