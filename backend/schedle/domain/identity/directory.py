"""Directory of every known user, used for lookups and search."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional
from uuid import uuid4

from schedle.domain.identity.exceptions import EmailTaken, UnknownUser
from schedle.domain.identity.models import User
from schedle.infra.storage import RedisUserStorage, StorageReadError
from schedle.settings import settings

logger = logging.getLogger(__name__)

# Registered users and profile edits; generated users are rebuilt on start.
DIRECTORY_KEY = "directory_users"


def generated_user(index: int) -> User:
	return User(
		id=f"user{index}",
		name=f"User {index}",
		email=f"user{index}@example.com",
		avatar=f"https://i.pravatar.cc/150?img={index}",
	)


class UserDirectory:
	def __init__(self, storage: Optional[RedisUserStorage] = None, *, size: Optional[int] = None) -> None:
		self._storage = storage
		count = settings.directory_size if size is None else size
		self._users: Dict[str, User] = {}
		self._generated_ids = set()
		for index in range(1, count + 1):
			user = generated_user(index)
			self._users[user.id] = user
			self._generated_ids.add(user.id)
		self._stored: Dict[str, User] = {}
		for user in self._load_stored():
			self._stored[user.id] = user
			self._users[user.id] = user

	def _load_stored(self) -> List[User]:
		if self._storage is None:
			return []
		try:
			raw = self._storage.read(DIRECTORY_KEY)
		except StorageReadError:
			logger.warning("directory_read_failure", extra={"key": DIRECTORY_KEY})
			return []
		if not isinstance(raw, list):
			return []
		users: List[User] = []
		for record in raw:
			try:
				users.append(User.from_record(record))
			except (KeyError, TypeError, AttributeError):
				logger.warning("directory_record_skipped")
		return users

	def _persist(self) -> None:
		if self._storage is None:
			return
		self._storage.write(DIRECTORY_KEY, [user.to_record() for user in self._stored.values()])

	@property
	def all_users(self) -> List[User]:
		return list(self._users.values())

	def is_generated(self, user_id: str) -> bool:
		return user_id in self._generated_ids

	def get(self, user_id: str) -> Optional[User]:
		return self._users.get(str(user_id))

	def require(self, user_id: str) -> User:
		user = self.get(user_id)
		if user is None:
			raise UnknownUser()
		return user

	def find_by_email(self, email: str) -> Optional[User]:
		needle = email.strip().lower()
		for user in self._users.values():
			if user.email.lower() == needle:
				return user
		return None

	def search(self, query: str, *, exclude: Iterable[str] = ()) -> List[User]:
		"""Case-insensitive match on name or email; an empty query matches nothing."""
		needle = query.strip().lower()
		if not needle:
			return []
		excluded = {str(user_id) for user_id in exclude}
		return [
			user
			for user in self._users.values()
			if user.id not in excluded and (needle in user.name.lower() or needle in user.email.lower())
		]

	def register(self, name: str, email: str, *, avatar: Optional[str] = None) -> User:
		if self.find_by_email(email) is not None:
			raise EmailTaken()
		user = User(id=str(uuid4()), name=name, email=email.strip(), avatar=avatar)
		self._users[user.id] = user
		self._stored[user.id] = user
		self._persist()
		return user

	def update(self, user_id: str, **changes: Optional[str]) -> User:
		current = self.require(user_id)
		email = changes.get("email")
		if email is not None:
			owner = self.find_by_email(email)
			if owner is not None and owner.id != current.id:
				raise EmailTaken()
		updated = replace(current, **{key: value for key, value in changes.items() if value is not None})
		self._users[updated.id] = updated
		self._stored[updated.id] = updated
		self._persist()
		return updated
