"""Turns domain events into notifications.

One notification per recipient; the acting user never notifies themselves.
Declines and removals are silent.
"""

from __future__ import annotations

from typing import Callable, Iterable, List

from schedle.domain.events import (
	EventBus,
	EventCreated,
	EventDeleted,
	EventUpdated,
	FriendAccepted,
	FriendRequested,
)
from schedle.domain.identity.directory import UserDirectory
from schedle.domain.notifications.models import NotificationType
from schedle.domain.notifications.service import NotificationCenter


def _recipients(participant_ids: Iterable[str], actor_id: str) -> List[str]:
	seen: set[str] = set()
	result: List[str] = []
	for participant_id in participant_ids:
		if participant_id == actor_id or participant_id in seen:
			continue
		seen.add(participant_id)
		result.append(participant_id)
	return result


class NotificationSubscriber:
	def __init__(self, center: NotificationCenter, directory: UserDirectory, bus: EventBus) -> None:
		self._center = center
		self._directory = directory
		self._unsubscribers: List[Callable[[], None]] = [
			bus.subscribe(FriendRequested, self.on_friend_requested),
			bus.subscribe(FriendAccepted, self.on_friend_accepted),
			bus.subscribe(EventCreated, self.on_event_created),
			bus.subscribe(EventUpdated, self.on_event_updated),
			bus.subscribe(EventDeleted, self.on_event_deleted),
		]

	def close(self) -> None:
		for unsubscribe in self._unsubscribers:
			unsubscribe()
		self._unsubscribers = []

	def _display_name(self, user_id: str) -> str:
		user = self._directory.get(user_id)
		return user.name if user else "Someone"

	def on_friend_requested(self, event: FriendRequested) -> None:
		self._center.add_notification(
			user_id=event.to_user_id,
			title="New friend request",
			message=f"{self._display_name(event.from_user_id)} wants to add you as a friend",
			type=NotificationType.FRIEND_REQUEST,
			related_id=event.request_id,
		)

	def on_friend_accepted(self, event: FriendAccepted) -> None:
		self._center.add_notification(
			user_id=event.from_user_id,
			title="Friend request accepted",
			message=f"{self._display_name(event.to_user_id)} accepted your friend request",
			type=NotificationType.FRIEND_ACCEPTED,
			related_id=event.request_id,
		)

	def on_event_created(self, event: EventCreated) -> None:
		inviter = self._display_name(event.actor_id)
		for recipient in _recipients(event.participant_ids, event.actor_id):
			self._center.add_notification(
				user_id=recipient,
				title="New event invitation",
				message=f'{inviter} invited you to "{event.title}"',
				type=NotificationType.EVENT_INVITE,
				related_id=event.event_id,
			)

	def on_event_updated(self, event: EventUpdated) -> None:
		editor = self._display_name(event.actor_id)
		for recipient in _recipients(event.participant_ids, event.actor_id):
			self._center.add_notification(
				user_id=recipient,
				title="Event updated",
				message=f'{editor} updated "{event.title}"',
				type=NotificationType.EVENT_UPDATE,
				related_id=event.event_id,
			)

	def on_event_deleted(self, event: EventDeleted) -> None:
		editor = self._display_name(event.actor_id)
		for recipient in _recipients(event.participant_ids, event.actor_id):
			self._center.add_notification(
				user_id=recipient,
				title="Event cancelled",
				message=f'{editor} cancelled "{event.title}"',
				type=NotificationType.EVENT_UPDATE,
				related_id=event.event_id,
			)
