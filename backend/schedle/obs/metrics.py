"""Central registry for Prometheus metrics used across the core."""

from __future__ import annotations

from prometheus_client import Counter

FRIEND_REQUESTS_SENT = Counter(
	"schedle_friend_requests_sent_total",
	"Friend requests sent",
	["result"],
)

FRIEND_REQUESTS_ACCEPTED = Counter(
	"schedle_friend_requests_accept_total",
	"Friend requests accepted",
)

FRIEND_REQUESTS_DECLINED = Counter(
	"schedle_friend_requests_decline_total",
	"Friend requests declined",
)

FRIENDS_REMOVED = Counter(
	"schedle_friends_removed_total",
	"Friend relationships removed",
)

NOTIFICATIONS_CREATED = Counter(
	"schedle_notifications_created_total",
	"Notifications created",
	["type"],
)

STORAGE_READ_FAILURES = Counter(
	"schedle_storage_read_failures_total",
	"Stored collections that could not be decoded",
	["kind"],
)

CALENDAR_MUTATIONS = Counter(
	"schedle_calendar_mutations_total",
	"Calendar event mutations",
	["action"],
)

MESSAGES_SENT = Counter(
	"schedle_messages_sent_total",
	"Direct messages sent",
)

SESSIONS_OPENED = Counter(
	"schedle_sessions_opened_total",
	"User sessions opened",
	["reason"],
)


def inc_friend_request_sent(result: str) -> None:
	FRIEND_REQUESTS_SENT.labels(result=result).inc()


def inc_friend_request_accept() -> None:
	FRIEND_REQUESTS_ACCEPTED.inc()


def inc_friend_request_decline() -> None:
	FRIEND_REQUESTS_DECLINED.inc()


def inc_friend_removed() -> None:
	FRIENDS_REMOVED.inc()


def inc_notification_created(kind: str) -> None:
	NOTIFICATIONS_CREATED.labels(type=kind).inc()


def inc_storage_read_failure(kind: str) -> None:
	STORAGE_READ_FAILURES.labels(kind=kind).inc()


def inc_calendar_mutation(action: str) -> None:
	CALENDAR_MUTATIONS.labels(action=action).inc()


def inc_message_sent() -> None:
	MESSAGES_SENT.inc()


def inc_session_opened(reason: str) -> None:
	SESSIONS_OPENED.labels(reason=reason).inc()
