"""Wiring for a Schedle instance backed by the configured Redis store."""

from __future__ import annotations

from typing import Any, Optional

from schedle import obs
from schedle.context import ScheduleContext
from schedle.domain.identity.directory import UserDirectory
from schedle.domain.identity.provider import IdentityProvider
from schedle.infra.storage import RedisUserStorage


def create_context(client: Optional[Any] = None, *, restore: bool = True) -> ScheduleContext:
	"""Build the directory, identity provider and session context over one store."""
	obs.init()
	storage = RedisUserStorage(client)
	directory = UserDirectory(storage)
	identity = IdentityProvider(directory, storage)
	context = ScheduleContext(identity, storage)
	if restore:
		identity.restore()
	return context
