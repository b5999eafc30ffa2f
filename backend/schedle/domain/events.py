"""Domain events and the in-process bus that delivers them.

Mutating services publish events after their state has been written; the
notification center subscribes to them. Handlers run synchronously in
subscription order.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, DefaultDict, Deque, List, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)


def _now() -> datetime:
	return datetime.now(timezone.utc)


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
	actor_id: str
	occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True, kw_only=True)
class FriendRequested(DomainEvent):
	request_id: str
	from_user_id: str
	to_user_id: str


@dataclass(frozen=True, kw_only=True)
class FriendAccepted(DomainEvent):
	request_id: str
	from_user_id: str
	to_user_id: str


@dataclass(frozen=True, kw_only=True)
class FriendDeclined(DomainEvent):
	request_id: str
	from_user_id: str
	to_user_id: str


@dataclass(frozen=True, kw_only=True)
class FriendRemoved(DomainEvent):
	user_id: str
	friend_id: str
	removed: int


@dataclass(frozen=True, kw_only=True)
class EventCreated(DomainEvent):
	event_id: str
	title: str
	participant_ids: Tuple[str, ...] = ()


@dataclass(frozen=True, kw_only=True)
class EventUpdated(DomainEvent):
	event_id: str
	title: str
	participant_ids: Tuple[str, ...] = ()


@dataclass(frozen=True, kw_only=True)
class EventDeleted(DomainEvent):
	event_id: str
	title: str
	participant_ids: Tuple[str, ...] = ()


E = TypeVar("E", bound=DomainEvent)
Handler = Callable[[DomainEvent], None]

# Recent events kept for inspection; older ones are dropped.
HISTORY_LIMIT = 100


class EventBus:
	"""Synchronous publish/subscribe keyed by event class."""

	def __init__(self, history_limit: int = HISTORY_LIMIT) -> None:
		self._handlers: DefaultDict[Type[DomainEvent], List[Handler]] = defaultdict(list)
		self._history: Deque[DomainEvent] = deque(maxlen=history_limit)

	def subscribe(self, event_type: Type[E], handler: Callable[[E], None]) -> Callable[[], None]:
		"""Register ``handler`` and return a callable that unregisters it."""
		self._handlers[event_type].append(handler)  # type: ignore[arg-type]

		def _unsubscribe() -> None:
			handlers = self._handlers.get(event_type, [])
			if handler in handlers:
				handlers.remove(handler)  # type: ignore[arg-type]

		return _unsubscribe

	def publish(self, event: DomainEvent) -> None:
		self._history.append(event)
		for event_type, handlers in list(self._handlers.items()):
			if not isinstance(event, event_type):
				continue
			for handler in list(handlers):
				handler(event)
		logger.debug("domain_event", extra={"event": type(event).__name__, "actor_id": event.actor_id})

	@property
	def history(self) -> Tuple[DomainEvent, ...]:
		return tuple(self._history)

	def clear(self) -> None:
		self._handlers.clear()
		self._history.clear()
