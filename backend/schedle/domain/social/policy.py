"""Guard checks and lookups over a user's friend records."""

from __future__ import annotations

from typing import Iterable, List, Optional

from schedle.domain.identity.directory import UserDirectory
from schedle.domain.social.exceptions import (
	AlreadyFriends,
	AlreadyPending,
	FriendRequestNotFound,
	NoActiveUser,
	SelfRequest,
	UnknownTarget,
)
from schedle.domain.social.models import FriendRecord, FriendStatus


def guard_active(user_id: Optional[str]) -> str:
	if not user_id:
		raise NoActiveUser()
	return str(user_id)


def guard_not_self(user_id: str, target_id: str) -> None:
	if str(user_id) == str(target_id):
		raise SelfRequest()


def ensure_target_exists(directory: UserDirectory, target_id: str) -> None:
	if directory.get(target_id) is None:
		raise UnknownTarget()


def find_between_pair(records: Iterable[FriendRecord], user_a: str, user_b: str) -> List[FriendRecord]:
	return [record for record in records if record.connects(user_a, user_b)]


def find_open_between_pair(records: Iterable[FriendRecord], user_a: str, user_b: str) -> Optional[FriendRecord]:
	for record in find_between_pair(records, user_a, user_b):
		if record.is_open:
			return record
	return None


def ensure_no_open_relationship(records: Iterable[FriendRecord], user_a: str, user_b: str) -> None:
	existing = find_open_between_pair(records, user_a, user_b)
	if existing is None:
		return
	if existing.status == FriendStatus.ACCEPTED:
		raise AlreadyFriends()
	raise AlreadyPending()


def find_incoming_pending(records: Iterable[FriendRecord], request_id: str, recipient_id: str) -> FriendRecord:
	"""Return the pending request ``request_id`` addressed to ``recipient_id``."""
	for record in records:
		if record.id != str(request_id):
			continue
		if record.status != FriendStatus.PENDING or record.to_user_id != recipient_id:
			break
		return record
	raise FriendRequestNotFound()
