"""Friend graph engine: requests, acceptance, decline and removal.

The active user's records are held in memory and written through to storage on
every mutation. A record concerns two users, so each mutation is mirrored into
the other user's partition as well; otherwise the recipient would never see a
request sent while they were signed out.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple
from uuid import uuid4

from schedle.domain.events import EventBus, FriendAccepted, FriendDeclined, FriendRemoved, FriendRequested
from schedle.domain.identity.directory import UserDirectory
from schedle.domain.social import audit, policy
from schedle.domain.social.exceptions import DuplicateRelationship
from schedle.domain.social.models import FriendRecord, FriendStatus
from schedle.domain.social.schemas import FriendRequestView, FriendRow, RelationshipStatus
from schedle.infra.storage import StorageKind, UserStorage, load_collection, save_collection
from schedle.time_helpers import utcnow

logger = logging.getLogger(__name__)


class FriendGraph:
	def __init__(
		self,
		user_id: str,
		*,
		storage: UserStorage,
		directory: UserDirectory,
		bus: EventBus,
	) -> None:
		self._user_id = policy.guard_active(user_id)
		self._storage = storage
		self._directory = directory
		self._bus = bus
		self._records: List[FriendRecord] = load_collection(
			storage, self._user_id, StorageKind.FRIENDS, FriendRecord.from_record
		)

	@property
	def user_id(self) -> str:
		return self._user_id

	@property
	def records(self) -> Tuple[FriendRecord, ...]:
		return tuple(self._records)

	# --- persistence -------------------------------------------------------

	def _flush(self) -> None:
		save_collection(self._storage, self._user_id, StorageKind.FRIENDS, self._records)

	def _mirror(
		self,
		other_id: str,
		*,
		upsert: Optional[FriendRecord] = None,
		delete_ids: Iterable[str] = (),
	) -> None:
		if other_id == self._user_id:
			return
		doomed = set(delete_ids)
		theirs = load_collection(self._storage, other_id, StorageKind.FRIENDS, FriendRecord.from_record)
		result: List[FriendRecord] = []
		placed = False
		for record in theirs:
			if record.id in doomed:
				continue
			if upsert is not None and record.id == upsert.id:
				result.append(upsert)
				placed = True
				continue
			result.append(record)
		if upsert is not None and not placed:
			result.append(upsert)
		save_collection(self._storage, other_id, StorageKind.FRIENDS, result)

	# --- mutations ---------------------------------------------------------

	def send_friend_request(self, target_user_id: str) -> FriendRecord:
		sender_id = self._user_id
		target_id = str(target_user_id)

		policy.guard_not_self(sender_id, target_id)
		policy.ensure_target_exists(self._directory, target_id)
		try:
			policy.ensure_no_open_relationship(self._records, sender_id, target_id)
		except DuplicateRelationship as exc:
			audit.inc_send_reject(exc.reason)
			raise

		# Terminal records from older data would otherwise shadow the new request.
		stale = [record.id for record in policy.find_between_pair(self._records, sender_id, target_id)]
		if stale:
			self._records = [record for record in self._records if record.id not in stale]

		record = FriendRecord(
			id=str(uuid4()),
			added_by=sender_id,
			to_user_id=target_id,
			status=FriendStatus.PENDING,
			created_at=utcnow(),
		)
		self._records.append(record)
		self._flush()
		self._mirror(target_id, upsert=record, delete_ids=stale)

		audit.inc_request_sent("sent")
		audit.log_invite_event(
			"sent",
			{"invite_id": record.id, "from": sender_id, "to": target_id, "status": record.status.value},
		)
		self._bus.publish(
			FriendRequested(
				actor_id=sender_id,
				request_id=record.id,
				from_user_id=sender_id,
				to_user_id=target_id,
			)
		)
		return record

	def accept_friend_request(self, request_id: str) -> FriendRecord:
		record = policy.find_incoming_pending(self._records, request_id, self._user_id)
		record.status = FriendStatus.ACCEPTED
		self._flush()
		self._mirror(record.added_by, upsert=record)

		audit.inc_request_accept()
		audit.log_friend_event(
			"accepted",
			{"user_id": record.added_by, "friend_id": record.to_user_id, "status": record.status.value},
		)
		self._bus.publish(
			FriendAccepted(
				actor_id=self._user_id,
				request_id=record.id,
				from_user_id=record.added_by,
				to_user_id=record.to_user_id,
			)
		)
		return record

	def decline_friend_request(self, request_id: str) -> FriendRecord:
		record = policy.find_incoming_pending(self._records, request_id, self._user_id)
		self._records = [item for item in self._records if item.id != record.id]
		self._flush()
		self._mirror(record.added_by, delete_ids=[record.id])

		audit.inc_request_decline()
		audit.log_invite_event(
			"declined",
			{"invite_id": record.id, "from": record.added_by, "to": record.to_user_id, "status": "deleted"},
		)
		self._bus.publish(
			FriendDeclined(
				actor_id=self._user_id,
				request_id=record.id,
				from_user_id=record.added_by,
				to_user_id=record.to_user_id,
			)
		)
		return record

	def remove_friend(self, other_user_id: str) -> int:
		"""Delete every record connecting the active user and ``other_user_id``."""
		other_id = str(other_user_id)
		doomed = [record.id for record in policy.find_between_pair(self._records, self._user_id, other_id)]
		if not doomed:
			return 0
		self._records = [record for record in self._records if record.id not in doomed]
		self._flush()
		self._mirror(other_id, delete_ids=doomed)

		audit.inc_removed()
		audit.log_friend_event(
			"removed",
			{"user_id": self._user_id, "friend_id": other_id, "status": "none"},
		)
		self._bus.publish(
			FriendRemoved(actor_id=self._user_id, user_id=self._user_id, friend_id=other_id, removed=len(doomed))
		)
		return len(doomed)

	# --- queries -----------------------------------------------------------

	def get_friend_requests(self, user_id: str) -> List[FriendRecord]:
		"""Pending requests addressed to ``user_id``; never their own outgoing ones."""
		return [
			record
			for record in self._records
			if record.status == FriendStatus.PENDING and record.to_user_id == str(user_id)
		]

	def get_outgoing_requests(self, user_id: str) -> List[FriendRecord]:
		return [
			record
			for record in self._records
			if record.status == FriendStatus.PENDING and record.added_by == str(user_id)
		]

	def has_friend_request(self, from_user_id: str, to_user_id: str) -> bool:
		"""True when any record connects the two users, whatever its direction or status."""
		return bool(policy.find_between_pair(self._records, from_user_id, to_user_id))

	def are_friends(self, user_a: str, user_b: str) -> bool:
		return any(
			record.status == FriendStatus.ACCEPTED
			for record in policy.find_between_pair(self._records, user_a, user_b)
		)

	def friend_ids(self, user_id: Optional[str] = None) -> List[str]:
		owner = str(user_id or self._user_id)
		return [
			record.other_side(owner)
			for record in self._records
			if record.status == FriendStatus.ACCEPTED and record.involves(owner)
		]

	def accepted_friends(self, user_id: Optional[str] = None) -> List[FriendRow]:
		owner = str(user_id or self._user_id)
		rows: List[FriendRow] = []
		for record in self._records:
			if record.status != FriendStatus.ACCEPTED or not record.involves(owner):
				continue
			friend_id = record.other_side(owner)
			friend = self._directory.get(friend_id)
			rows.append(
				FriendRow(
					request_id=record.id,
					user_id=owner,
					friend_id=friend_id,
					status=record.status.value,
					created_at=record.created_at,
					friend_name=friend.name if friend else None,
					friend_email=friend.email if friend else None,
					friend_avatar=friend.avatar if friend else None,
				)
			)
		return rows

	def incoming_requests(self, user_id: Optional[str] = None) -> List[FriendRequestView]:
		return [self._request_view(record) for record in self.get_friend_requests(user_id or self._user_id)]

	def outgoing_requests(self, user_id: Optional[str] = None) -> List[FriendRequestView]:
		return [self._request_view(record) for record in self.get_outgoing_requests(user_id or self._user_id)]

	def relationship_status(self, other_user_id: str) -> RelationshipStatus:
		record = policy.find_open_between_pair(self._records, self._user_id, str(other_user_id))
		if record is None:
			return "none"
		if record.status == FriendStatus.ACCEPTED:
			return "friends"
		if record.added_by == self._user_id:
			return "request_sent"
		return "request_received"

	def _request_view(self, record: FriendRecord) -> FriendRequestView:
		sender = self._directory.get(record.added_by)
		recipient = self._directory.get(record.to_user_id)
		return FriendRequestView(
			id=record.id,
			from_user_id=record.added_by,
			to_user_id=record.to_user_id,
			status=record.status.value,
			created_at=record.created_at,
			from_name=sender.name if sender else None,
			from_avatar=sender.avatar if sender else None,
			to_name=recipient.name if recipient else None,
			to_avatar=recipient.avatar if recipient else None,
		)
