import sys
from pathlib import Path

import fakeredis
import pytest

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from schedle.context import ScheduleContext, UserSession
from schedle.domain.events import EventBus
from schedle.domain.identity.directory import UserDirectory
from schedle.domain.identity.provider import IdentityProvider
from schedle.infra.storage import RedisUserStorage
from schedle.settings import settings


@pytest.fixture(autouse=True)
def fake_redis():
	from schedle.infra.redis import redis_client, set_redis_client

	original = redis_client.client
	client = fakeredis.FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		client.flushall()


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Keep storage keys unprefixed and every info log line."""
	original_prefix = settings.storage_key_prefix
	original_rate = settings.obs_log_sampling_rate_info
	settings.storage_key_prefix = ""
	settings.obs_log_sampling_rate_info = 1.0
	try:
		yield
	finally:
		settings.storage_key_prefix = original_prefix
		settings.obs_log_sampling_rate_info = original_rate


@pytest.fixture
def storage(fake_redis):
	return RedisUserStorage(fake_redis, prefix="")


@pytest.fixture
def directory(storage):
	return UserDirectory(storage, size=10)


@pytest.fixture
def bus():
	return EventBus()


@pytest.fixture
def identity(directory, storage):
	return IdentityProvider(directory, storage)


@pytest.fixture
def session_for(identity, storage):
	"""Open a fresh session for a directory user, as if they had just signed in."""
	opened = []

	def _open(user_id: str) -> UserSession:
		session = UserSession(identity.directory.require(user_id), storage=storage, identity=identity)
		opened.append(session)
		return session

	yield _open
	for session in opened:
		session.close()


@pytest.fixture
def context(identity, storage):
	ctx = ScheduleContext(identity, storage)
	try:
		yield ctx
	finally:
		ctx.close()
