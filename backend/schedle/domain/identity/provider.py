"""Mock identity provider: login, registration, logout and user switching.

Credentials never leave the key-value store. Generated directory users log in
with the configured demo password until they pick their own; registered users
get an Argon2 hash under ``credentials_<email>``.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from pydantic import ValidationError

from schedle.domain.identity.directory import UserDirectory
from schedle.domain.identity.exceptions import InvalidCredentials, InvalidProfile, NotAuthenticated
from schedle.domain.identity.models import User
from schedle.domain.identity.schemas import LoginRequest, ProfileUpdate, RegisterRequest
from schedle.infra.password import check_needs_rehash, hash_password, verify_password
from schedle.infra.storage import RedisUserStorage, StorageReadError
from schedle.settings import settings

logger = logging.getLogger(__name__)

SESSION_KEY = "user"

# (previous, current, reason)
IdentityListener = Callable[[Optional[User], Optional[User], str], None]


def credentials_key(email: str) -> str:
	return f"credentials_{email.strip().lower()}"


class IdentityProvider:
	def __init__(self, directory: UserDirectory, storage: RedisUserStorage) -> None:
		self._directory = directory
		self._storage = storage
		self._current: Optional[User] = None
		self._listeners: List[IdentityListener] = []

	@property
	def directory(self) -> UserDirectory:
		return self._directory

	@property
	def current_user(self) -> Optional[User]:
		return self._current

	@property
	def is_authenticated(self) -> bool:
		return self._current is not None

	def add_listener(self, listener: IdentityListener) -> Callable[[], None]:
		self._listeners.append(listener)

		def _remove() -> None:
			if listener in self._listeners:
				self._listeners.remove(listener)

		return _remove

	def restore(self) -> Optional[User]:
		"""Resume the session stored under the ``user`` key, if any."""
		try:
			raw = self._storage.read(SESSION_KEY)
		except StorageReadError:
			logger.warning("session_restore_failed")
			self._storage.remove(SESSION_KEY)
			return None
		if not isinstance(raw, dict):
			return None
		user = self._directory.get(str(raw.get("id")))
		if user is None:
			self._storage.remove(SESSION_KEY)
			return None
		self._set_current(user, "restore")
		return user

	def login(self, email: str, password: str) -> User:
		try:
			request = LoginRequest(email=email, password=password)
		except ValidationError as exc:
			raise InvalidCredentials() from exc
		user = self._directory.find_by_email(request.email)
		if user is None or not self._check_password(user, request.password):
			logger.info("login_failed")
			raise InvalidCredentials()
		stored_hash = self._read_hash(user.email)
		if stored_hash is not None and check_needs_rehash(stored_hash):
			self._storage.write(credentials_key(user.email), hash_password(request.password))
		self._set_current(user, "login")
		return user

	def register(self, name: str, email: str, password: str) -> User:
		try:
			request = RegisterRequest(name=name, email=email, password=password)
		except ValidationError as exc:
			raise InvalidProfile("invalid_registration") from exc
		user = self._directory.register(request.name.strip(), request.email)
		self._storage.write(credentials_key(user.email), hash_password(request.password))
		logger.info("user_registered", extra={"user_id": user.id})
		self._set_current(user, "register")
		return user

	def logout(self) -> None:
		if self._current is None:
			return
		self._storage.remove(SESSION_KEY)
		self._set_current(None, "logout")

	def switch_user(self, user_id: str) -> User:
		"""Act as another directory user without credentials (demo helper)."""
		user = self._directory.require(user_id)
		if self._current is not None and self._current.id == user.id:
			return user
		self._set_current(user, "switch")
		return user

	def update_profile(self, patch: ProfileUpdate) -> User:
		if self._current is None:
			raise NotAuthenticated()
		previous = self._current
		updated = self._directory.update(previous.id, **patch.model_dump(exclude_none=True))
		if updated.email.lower() != previous.email.lower():
			stored_hash = self._read_hash(previous.email)
			if stored_hash is not None:
				self._storage.write(credentials_key(updated.email), stored_hash)
				self._storage.remove(credentials_key(previous.email))
		self._set_current(updated, "profile")
		return updated

	def _read_hash(self, email: str) -> Optional[str]:
		try:
			value = self._storage.read(credentials_key(email))
		except StorageReadError:
			return None
		return value if isinstance(value, str) else None

	def _check_password(self, user: User, password: str) -> bool:
		stored_hash = self._read_hash(user.email)
		if stored_hash is None:
			return self._directory.is_generated(user.id) and password == settings.demo_password
		return verify_password(stored_hash, password)

	def _set_current(self, user: Optional[User], reason: str) -> None:
		previous = self._current
		self._current = user
		if user is not None:
			self._storage.write(SESSION_KEY, user.to_record())
		for listener in list(self._listeners):
			listener(previous, user, reason)
