"""Per-user key-value persistence.

Every user owns a partition of flat keys such as ``friends_<userId>`` or
``notifications_<userId>``. Each key holds one JSON document that is replaced
wholesale on save; there are no partial updates and no versioning, so two
writers for the same user clobber each other (last write wins).
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol, TypeVar

from schedle.infra.redis import redis_client
from schedle.obs import metrics as obs_metrics
from schedle.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageKind(str, Enum):
	"""Collections stored per user."""

	FRIENDS = "friends"
	EVENTS = "events"
	GROUPS = "groups"
	NOTIFICATIONS = "notifications"
	MESSAGES = "messages"
	PRIVACY = "privacy"


class StorageReadError(Exception):
	"""Raised when a stored document cannot be decoded."""

	def __init__(self, key: str, reason: str) -> None:
		super().__init__(f"{key}: {reason}")
		self.key = key
		self.reason = reason


def partition_key(user_id: str, kind: StorageKind | str) -> str:
	kind_value = kind.value if isinstance(kind, StorageKind) else str(kind)
	return f"{kind_value}_{user_id}"


class UserStorage(Protocol):
	"""Surface the core needs from the persistence layer."""

	def load(self, user_id: str, kind: StorageKind) -> Optional[Any]:
		...

	def save(self, user_id: str, kind: StorageKind, value: Any) -> None:
		...


class RedisUserStorage:
	"""JSON documents in Redis, one key per user and collection."""

	def __init__(self, client: Any = None, *, prefix: Optional[str] = None) -> None:
		self._client = client if client is not None else redis_client
		self._prefix = settings.storage_key_prefix if prefix is None else prefix

	def key(self, name: str) -> str:
		return f"{self._prefix}{name}"

	def read(self, name: str) -> Optional[Any]:
		"""Return the decoded document under ``name``, or None when never written."""
		key = self.key(name)
		raw = self._client.get(key)
		if raw is None:
			return None
		try:
			return json.loads(raw)
		except (TypeError, ValueError) as exc:
			raise StorageReadError(key, "malformed_json") from exc

	def write(self, name: str, value: Any) -> None:
		self._client.set(self.key(name), json.dumps(value, separators=(",", ":")))

	def remove(self, name: str) -> None:
		self._client.delete(self.key(name))

	def load(self, user_id: str, kind: StorageKind) -> Optional[Any]:
		return self.read(partition_key(user_id, kind))

	def save(self, user_id: str, kind: StorageKind, value: Any) -> None:
		self.write(partition_key(user_id, kind), value)


def load_collection(
	storage: UserStorage,
	user_id: str,
	kind: StorageKind,
	from_record: Callable[[dict], T],
) -> List[T]:
	"""Load and rehydrate a stored array, falling back to empty on corruption."""
	try:
		raw = storage.load(user_id, kind)
	except StorageReadError as exc:
		_record_read_failure(user_id, kind, exc.reason)
		return []
	if raw is None:
		return []
	if not isinstance(raw, list):
		_record_read_failure(user_id, kind, "not_a_list")
		return []
	try:
		return [from_record(item) for item in raw]
	except (KeyError, TypeError, ValueError, AttributeError):
		_record_read_failure(user_id, kind, "malformed_record")
		return []


def save_collection(storage: UserStorage, user_id: str, kind: StorageKind, items: List[Any]) -> None:
	storage.save(user_id, kind, [item.to_record() for item in items])


def _record_read_failure(user_id: str, kind: StorageKind, reason: str) -> None:
	obs_metrics.inc_storage_read_failure(kind.value)
	logger.warning(
		"storage_read_failure",
		extra={"user_id": user_id, "kind": kind.value, "reason": reason},
	)
