"""Session-scoped facade over the domain services.

A :class:`UserSession` is built when a user signs in and discarded when they
sign out or switch, so no in-memory state outlives its owner. The
:class:`ScheduleContext` follows the identity provider, forwards operations to
the open session and reports domain errors as transient :class:`Notice`
objects instead of raising them.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, List, Literal, Optional, Sequence, TypeVar
from uuid import uuid4

from pydantic import BaseModel

from schedle.domain.calendar.groups import GroupStore
from schedle.domain.calendar.models import VIEW_MODES, CalendarEvent, CalendarFilters, EventType, Group, Recurrence
from schedle.domain.calendar.service import EventStore
from schedle.domain.chat.models import Message
from schedle.domain.chat.service import MessageStore
from schedle.domain.common.errors import SchedleError
from schedle.domain.events import EventBus
from schedle.domain.identity import privacy
from schedle.domain.identity.models import User
from schedle.domain.identity.provider import IdentityProvider
from schedle.domain.identity.schemas import PrivacySettings, PrivacySettingsPatch
from schedle.domain.notifications.models import Notification, NotificationType
from schedle.domain.notifications.service import NotificationCenter
from schedle.domain.notifications.subscribers import NotificationSubscriber
from schedle.domain.social.exceptions import NoActiveUser
from schedle.domain.social.models import FriendRecord
from schedle.domain.social.service import FriendGraph
from schedle.infra.storage import UserStorage
from schedle.obs import logging as obs_logging
from schedle.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Notice(BaseModel):
	title: str
	description: str
	variant: Literal["default", "destructive"] = "default"
	reason: Optional[str] = None


def notice_for(error: SchedleError) -> Notice:
	"""Translate a domain error into the message shown to the user."""
	match error.reason:
		case "not_found":
			title, description = "Request not found", "This friend request no longer exists."
		case "already_pending":
			title, description = "Request already sent", "A friend request between you is already pending."
		case "already_friends":
			title, description = "Already friends", "You are already friends with this user."
		case "self_request":
			title, description = "Invalid request", "You cannot add yourself as a friend."
		case "user_missing":
			title, description = "User not found", "No such user exists."
		case "no_active_user" | "not_authenticated":
			title, description = "Sign in required", "Sign in to continue."
		case "invalid_credentials":
			title, description = "Sign in failed", "Wrong email or password."
		case "email_taken":
			title, description = "Email in use", "An account with this email already exists."
		case "invalid_registration" | "invalid_profile":
			title, description = "Invalid details", "Check the name, email and password you entered."
		case "event_not_found":
			title, description = "Event not found", "This event no longer exists."
		case "missing_title" | "end_before_start" | "unknown_participant" | "unknown_field" | "invalid_event":
			title, description = "Invalid event", "Check the title, times and participants of the event."
		case "invite_forbidden":
			title, description = "Cannot invite", "One of the participants does not accept event invitations from you."
		case "not_owner":
			title, description = "Not allowed", "Only the organiser can change this event."
		case "group_not_found":
			title, description = "Group not found", "This group no longer exists."
		case "missing_name" | "unknown_member" | "invalid_group":
			title, description = "Invalid group", "Check the group name and members."
		case "empty_message":
			title, description = "Empty message", "Type a message before sending."
		case "message_too_long":
			title, description = "Message too long", "Shorten the message and try again."
		case "not_friends" | "privacy" | "self_message":
			title, description = "Cannot send message", "You can only message friends who accept messages."
		case _:
			title, description = "Something went wrong", f"The action could not be completed ({error.reason})."
	return Notice(title=title, description=description, variant="destructive", reason=error.reason)


class UserSession:
	"""Every per-user store, wired to a private event bus."""

	def __init__(self, user: User, *, storage: UserStorage, identity: IdentityProvider) -> None:
		directory = identity.directory
		self.user = user
		self.bus = EventBus()
		self.friends = FriendGraph(user.id, storage=storage, directory=directory, bus=self.bus)
		self.notifications = NotificationCenter(user.id, storage=storage)
		self._subscriber = NotificationSubscriber(self.notifications, directory, self.bus)
		self.events = EventStore(user.id, storage=storage, directory=directory, bus=self.bus, friends=self.friends)
		self.groups = GroupStore(user.id, storage=storage, directory=directory)
		self.messages = MessageStore(user.id, storage=storage, directory=directory, friends=self.friends)
		self._storage = storage

	@property
	def user_id(self) -> str:
		return self.user.id

	def privacy_settings(self) -> PrivacySettings:
		return privacy.get_privacy_settings(self._storage, self.user.id)

	def close(self) -> None:
		self._subscriber.close()
		self.bus.clear()


class ScheduleContext:
	def __init__(
		self,
		identity: IdentityProvider,
		storage: UserStorage,
		*,
		on_notice: Optional[Callable[[Notice], None]] = None,
	) -> None:
		self._identity = identity
		self._storage = storage
		self._on_notice = on_notice
		self._session: Optional[UserSession] = None
		self._log_tokens: dict = {}
		self.notices: List[Notice] = []

		self.view_mode: str = "month"
		self.filters = CalendarFilters()
		self.selected_date: date = date.today()
		self.selected_event: Optional[CalendarEvent] = None

		self._detach = identity.add_listener(self._on_identity_change)
		if identity.current_user is not None:
			self._open(identity.current_user, "restore")

	# --- session lifecycle -------------------------------------------------

	@property
	def current_user(self) -> Optional[User]:
		return self._identity.current_user

	@property
	def session(self) -> Optional[UserSession]:
		return self._session

	def _on_identity_change(self, previous: Optional[User], current: Optional[User], reason: str) -> None:
		if current is None:
			self._close()
			return
		if self._session is not None and previous is not None and previous.id == current.id:
			self._session.user = current
			return
		self._close()
		self._open(current, reason)
		if reason == "register" and self._session is not None:
			self._session.notifications.add_notification(
				user_id=current.id,
				title="Welcome to Schedle",
				message="Add friends and plan your first event together.",
				type=NotificationType.SYSTEM,
			)

	def _open(self, user: User, reason: str) -> None:
		self._log_tokens = obs_logging.bind_context(session_id=uuid4().hex, user_id=user.id)
		self._session = UserSession(user, storage=self._storage, identity=self._identity)
		obs_metrics.inc_session_opened(reason)
		logger.info("session_opened", extra={"reason": reason})

	def _close(self) -> None:
		if self._session is None:
			return
		self._session.close()
		self._session = None
		self.selected_event = None
		logger.info("session_closed")
		obs_logging.reset_context(self._log_tokens)
		self._log_tokens = {}

	def close(self) -> None:
		self._close()
		self._detach()

	def drain_notices(self) -> List[Notice]:
		notices, self.notices = self.notices, []
		return notices

	def _notify(self, notice: Notice) -> None:
		self.notices.append(notice)
		if self._on_notice is not None:
			self._on_notice(notice)

	def _require_session(self) -> UserSession:
		if self._session is None:
			raise NoActiveUser()
		return self._session

	def _run(self, operation: str, action: Callable[[], T], success: Optional[Notice] = None) -> Optional[T]:
		with obs_logging.log_context(operation=operation):
			try:
				result = action()
			except SchedleError as exc:
				logger.info("operation_rejected", extra={"reason": exc.reason})
				self._notify(notice_for(exc))
				return None
		if success is not None:
			self._notify(success)
		return result

	# --- identity ----------------------------------------------------------

	def login(self, email: str, password: str) -> Optional[User]:
		return self._run("login", lambda: self._identity.login(email, password))

	def register(self, name: str, email: str, password: str) -> Optional[User]:
		return self._run("register", lambda: self._identity.register(name, email, password))

	def logout(self) -> None:
		self._identity.logout()

	def switch_user(self, user_id: str) -> Optional[User]:
		return self._run("switch_user", lambda: self._identity.switch_user(user_id))

	def search_users(self, query: str) -> List[User]:
		exclude = [self.current_user.id] if self.current_user else []
		return self._identity.directory.search(query, exclude=exclude)

	# --- friends -----------------------------------------------------------

	def send_friend_request(self, target_user_id: str) -> Optional[FriendRecord]:
		target = self._identity.directory.get(target_user_id)
		name = target.name if target else target_user_id
		return self._run(
			"send_friend_request",
			lambda: self._require_session().friends.send_friend_request(target_user_id),
			Notice(title="Request sent", description=f"Friend request sent to {name}"),
		)

	def accept_friend_request(self, request_id: str) -> Optional[FriendRecord]:
		return self._run(
			"accept_friend_request",
			lambda: self._require_session().friends.accept_friend_request(request_id),
			Notice(title="Request accepted", description="You are now friends"),
		)

	def decline_friend_request(self, request_id: str) -> Optional[FriendRecord]:
		return self._run(
			"decline_friend_request",
			lambda: self._require_session().friends.decline_friend_request(request_id),
			Notice(title="Request declined", description="The friend request was declined"),
		)

	def remove_friend(self, other_user_id: str) -> Optional[int]:
		return self._run(
			"remove_friend",
			lambda: self._require_session().friends.remove_friend(other_user_id),
			Notice(title="Friend removed", description="The user was removed from your friends"),
		)

	def get_friend_requests(self, user_id: str) -> List[FriendRecord]:
		if self._session is None:
			return []
		return self._session.friends.get_friend_requests(user_id)

	def has_friend_request(self, from_user_id: str, to_user_id: str) -> bool:
		if self._session is None:
			return False
		return self._session.friends.has_friend_request(from_user_id, to_user_id)

	# --- notifications -----------------------------------------------------

	@property
	def notifications(self) -> List[Notification]:
		return self._session.notifications.notifications if self._session else []

	def mark_notification_as_read(self, notification_id: str) -> None:
		self._run(
			"mark_notification_as_read",
			lambda: self._require_session().notifications.mark_notification_as_read(notification_id),
		)

	def mark_all_notifications_as_read(self) -> None:
		self._run("mark_all_as_read", lambda: self._require_session().notifications.mark_all_as_read())

	def clear_notifications(self) -> None:
		self._run("clear_notifications", lambda: self._require_session().notifications.clear_notifications())

	# --- calendar ----------------------------------------------------------

	def add_event(
		self,
		*,
		title: str,
		start: datetime,
		end: datetime,
		type: EventType = EventType.PERSONAL,
		participants: Sequence[str] = (),
		recurring: Optional[Recurrence] = None,
		**details: Optional[str],
	) -> Optional[CalendarEvent]:
		return self._run(
			"add_event",
			lambda: self._require_session().events.add_event(
				title=title,
				start=start,
				end=end,
				type=type,
				participants=participants,
				recurring=recurring,
				**details,
			),
			Notice(title="Event created", description=title),
		)

	def update_event(self, event_id: str, **changes: object) -> Optional[CalendarEvent]:
		updated = self._run("update_event", lambda: self._require_session().events.update_event(event_id, **changes))
		if updated is not None and self.selected_event is not None and self.selected_event.id == updated.id:
			self.selected_event = updated
		return updated

	def delete_event(self, event_id: str) -> Optional[CalendarEvent]:
		deleted = self._run("delete_event", lambda: self._require_session().events.delete_event(event_id))
		if deleted is not None and self.selected_event is not None and self.selected_event.id == deleted.id:
			self.selected_event = None
		return deleted

	@property
	def events(self) -> List[CalendarEvent]:
		return self._session.events.events if self._session else []

	@property
	def visible_events(self) -> List[CalendarEvent]:
		"""Events passing the current filters, recomputed on every access."""
		return self._session.events.filtered_events(self.filters) if self._session else []

	def events_on(self, day: date) -> List[CalendarEvent]:
		return self._session.events.events_on(day, self.filters) if self._session else []

	def set_view_mode(self, mode: str) -> None:
		if mode not in VIEW_MODES:
			raise ValueError(f"unknown view mode: {mode}")
		self.view_mode = mode

	def set_filters(self, filters: CalendarFilters) -> None:
		self.filters = filters

	def set_selected_date(self, day: date) -> None:
		self.selected_date = day

	def set_selected_event(self, event: Optional[CalendarEvent]) -> None:
		self.selected_event = event

	# --- groups ------------------------------------------------------------

	def create_group(self, name: str, member_ids: Sequence[str] = ()) -> Optional[Group]:
		return self._run(
			"create_group",
			lambda: self._require_session().groups.create_group(name, member_ids),
			Notice(title="Group created", description=name),
		)

	def delete_group(self, group_id: str) -> Optional[Group]:
		return self._run("delete_group", lambda: self._require_session().groups.delete_group(group_id))

	@property
	def groups(self) -> List[Group]:
		return self._session.groups.groups if self._session else []

	# --- messages & settings -----------------------------------------------

	def send_message(self, receiver_id: str, content: str) -> Optional[Message]:
		return self._run("send_message", lambda: self._require_session().messages.send_message(receiver_id, content))

	def conversation(self, other_user_id: str) -> List[Message]:
		return self._session.messages.conversation(other_user_id) if self._session else []

	def update_privacy_settings(self, patch: PrivacySettingsPatch) -> Optional[PrivacySettings]:
		return self._run(
			"update_privacy_settings",
			lambda: privacy.update_privacy_settings(self._storage, self._require_session().user_id, patch),
			Notice(title="Privacy settings updated", description="Your privacy settings were saved"),
		)
