"""Event store: calendar events of the active user.

``is_multi_day`` is derived on every create and update. Events with
participants are mirrored into each participant's partition so invitees see
them on their own calendar; the creator's copy is authoritative.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple
from uuid import uuid4

from schedle.domain.calendar.exceptions import EventNotFound, InvalidEvent
from schedle.domain.calendar.models import (
	DEFAULT_COLOR,
	CalendarEvent,
	CalendarFilters,
	EventType,
	Recurrence,
)
from schedle.domain.events import EventBus, EventCreated, EventDeleted, EventUpdated
from schedle.domain.identity import privacy
from schedle.domain.identity.directory import UserDirectory
from schedle.domain.social.service import FriendGraph
from schedle.infra.storage import StorageKind, UserStorage, load_collection, save_collection
from schedle.obs import metrics as obs_metrics
from schedle.settings import settings
from schedle.time_helpers import ensure_aware

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset(
	{
		"title",
		"start",
		"end",
		"type",
		"color",
		"description",
		"location",
		"participants",
		"group_id",
		"recurring",
	}
)


def derive_multi_day(start: datetime, end: datetime) -> bool:
	return (end - start) > timedelta(hours=settings.multi_day_threshold_hours)


class EventStore:
	def __init__(
		self,
		user_id: str,
		*,
		storage: UserStorage,
		directory: UserDirectory,
		bus: EventBus,
		friends: FriendGraph,
	) -> None:
		self._user_id = user_id
		self._storage = storage
		self._directory = directory
		self._bus = bus
		self._friends = friends
		self._events: List[CalendarEvent] = load_collection(
			storage, user_id, StorageKind.EVENTS, CalendarEvent.from_record
		)

	@property
	def events(self) -> List[CalendarEvent]:
		return list(self._events)

	def get_event(self, event_id: str) -> CalendarEvent:
		for event in self._events:
			if event.id == event_id:
				return event
		raise EventNotFound()

	def filtered_events(self, filters: CalendarFilters) -> List[CalendarEvent]:
		return [event for event in self._events if filters.allows(event.type)]

	def events_on(self, day: date, filters: Optional[CalendarFilters] = None) -> List[CalendarEvent]:
		source = self.filtered_events(filters) if filters is not None else self._events
		return sorted((event for event in source if event.occurs_on(day)), key=lambda event: event.start)

	# --- mutations ---------------------------------------------------------

	def add_event(
		self,
		*,
		title: str,
		start: datetime,
		end: datetime,
		type: EventType = EventType.PERSONAL,
		color: str = DEFAULT_COLOR,
		description: Optional[str] = None,
		location: Optional[str] = None,
		participants: Sequence[str] = (),
		group_id: Optional[str] = None,
		recurring: Optional[Recurrence] = None,
	) -> CalendarEvent:
		event = self._validated(
			CalendarEvent(
				id=str(uuid4()),
				title=title,
				start=start,
				end=end,
				type=_coerce_type(type),
				created_by=self._user_id,
				color=color,
				description=description,
				location=location,
				participants=_coerce_participants(participants),
				group_id=group_id,
				recurring=recurring,
			)
		)
		self._ensure_invitable(event.participants)
		self._events.append(event)
		self._flush()
		self._mirror_to(event.participants, upsert=event)
		obs_metrics.inc_calendar_mutation("create")
		logger.info("event_created", extra={"event_id": event.id, "participants": len(event.participants)})
		self._bus.publish(
			EventCreated(
				actor_id=self._user_id,
				event_id=event.id,
				title=event.title,
				participant_ids=event.participants,
			)
		)
		return event

	def update_event(self, event_id: str, **changes: object) -> CalendarEvent:
		current = self.get_event(event_id)
		if current.created_by != self._user_id:
			raise InvalidEvent("not_owner")
		unknown = set(changes) - _UPDATABLE_FIELDS
		if unknown:
			raise InvalidEvent("unknown_field")
		if "participants" in changes:
			changes["participants"] = _coerce_participants(changes["participants"])
		if "type" in changes:
			changes["type"] = _coerce_type(changes["type"])
		updated = self._validated(replace(current, **changes))  # type: ignore[arg-type]
		invited = [pid for pid in updated.participants if pid not in current.participants]
		self._ensure_invitable(invited)
		self._events = [updated if event.id == updated.id else event for event in self._events]
		self._flush()
		dropped = [pid for pid in current.participants if pid not in updated.participants]
		self._mirror_to(updated.participants, upsert=updated)
		self._mirror_to(dropped, delete_id=updated.id)
		obs_metrics.inc_calendar_mutation("update")
		logger.info("event_updated", extra={"event_id": updated.id, "fields": ",".join(sorted(changes))})
		self._bus.publish(
			EventUpdated(
				actor_id=self._user_id,
				event_id=updated.id,
				title=updated.title,
				participant_ids=updated.participants,
			)
		)
		return updated

	def delete_event(self, event_id: str) -> CalendarEvent:
		"""Delete an owned event everywhere, or drop an invitation from this calendar only."""
		event = self.get_event(event_id)
		self._events = [item for item in self._events if item.id != event.id]
		self._flush()
		obs_metrics.inc_calendar_mutation("delete")
		if event.created_by != self._user_id:
			logger.info("event_left", extra={"event_id": event.id})
			return event
		self._mirror_to(event.participants, delete_id=event.id)
		logger.info("event_deleted", extra={"event_id": event.id})
		self._bus.publish(
			EventDeleted(
				actor_id=self._user_id,
				event_id=event.id,
				title=event.title,
				participant_ids=event.participants,
			)
		)
		return event

	# --- helpers -----------------------------------------------------------

	def _validated(self, event: CalendarEvent) -> CalendarEvent:
		if event.title is not None and not isinstance(event.title, str):
			raise InvalidEvent("invalid_event")
		title = (event.title or "").strip()
		if not title:
			raise InvalidEvent("missing_title")
		if not isinstance(event.start, datetime) or not isinstance(event.end, datetime):
			raise InvalidEvent("invalid_event")
		start = ensure_aware(event.start)
		end = ensure_aware(event.end)
		if end < start:
			raise InvalidEvent("end_before_start")
		participants = _dedupe(event.participants)
		for participant_id in participants:
			if self._directory.get(participant_id) is None:
				raise InvalidEvent("unknown_participant")
		return replace(
			event,
			title=title,
			start=start,
			end=end,
			participants=participants,
			is_multi_day=derive_multi_day(start, end),
		)

	def _ensure_invitable(self, participant_ids: Iterable[str]) -> None:
		for participant_id in participant_ids:
			if participant_id == self._user_id:
				continue
			invitee_privacy = privacy.get_privacy_settings(self._storage, participant_id)
			is_friend = self._friends.are_friends(self._user_id, participant_id)
			if not privacy.audience_allows(invitee_privacy.who_can_invite, is_self=False, is_friend=is_friend):
				logger.info("event_invite_blocked", extra={"participant_id": participant_id})
				raise InvalidEvent("invite_forbidden")

	def _flush(self) -> None:
		save_collection(self._storage, self._user_id, StorageKind.EVENTS, self._events)

	def _mirror_to(
		self,
		user_ids: Iterable[str],
		*,
		upsert: Optional[CalendarEvent] = None,
		delete_id: Optional[str] = None,
	) -> None:
		for user_id in user_ids:
			if user_id == self._user_id:
				continue
			theirs = load_collection(self._storage, user_id, StorageKind.EVENTS, CalendarEvent.from_record)
			if delete_id is not None:
				theirs = [event for event in theirs if event.id != delete_id]
			if upsert is not None:
				if any(event.id == upsert.id for event in theirs):
					theirs = [upsert if event.id == upsert.id else event for event in theirs]
				else:
					theirs.append(upsert)
			save_collection(self._storage, user_id, StorageKind.EVENTS, theirs)


def _coerce_type(value: object) -> EventType:
	try:
		return EventType(value)
	except (TypeError, ValueError) as exc:
		raise InvalidEvent("invalid_event") from exc


def _coerce_participants(values: object) -> Tuple[str, ...]:
	if values is None:
		return ()
	if isinstance(values, str):
		raise InvalidEvent("invalid_event")
	try:
		return tuple(values)  # type: ignore[call-overload]
	except TypeError as exc:
		raise InvalidEvent("invalid_event") from exc


def _dedupe(values: Iterable[str]) -> Tuple[str, ...]:
	seen: set[str] = set()
	result: List[str] = []
	for value in values:
		value = str(value)
		if value in seen:
			continue
		seen.add(value)
		result.append(value)
	return tuple(result)
