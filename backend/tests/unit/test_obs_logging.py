import json
import logging

import pytest

from schedle.obs import logging as obs_logging
from schedle.settings import settings


def _record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("schedle.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_json_with_bound_context():
    tokens = obs_logging.bind_context(user_id="user1", operation="send_friend_request")
    try:
        payload = json.loads(obs_logging.JSONLogFormatter().format(_record(reason="already_pending")))
    finally:
        obs_logging.reset_context(tokens)

    assert payload["msg"] == "hello"
    assert payload["level"] == "info"
    assert payload["logger"] == "schedle.test"
    assert payload["service"] == settings.service_name
    assert payload["user_id"] == "user1"
    assert payload["operation"] == "send_friend_request"
    assert payload["reason"] == "already_pending"


def test_context_resets_after_use():
    tokens = obs_logging.bind_context(user_id="user1")
    obs_logging.reset_context(tokens)

    payload = json.loads(obs_logging.JSONLogFormatter().format(_record()))

    assert "user_id" not in payload


def test_sensitive_fields_are_redacted():
    record = _record(password="hunter22", content="secret plans", nested={"email": "a@b.c", "kind": "x"})

    payload = json.loads(obs_logging.JSONLogFormatter().format(record))

    assert payload["password"] == "[redacted]"
    assert payload["content"] == "[redacted]"
    assert payload["nested"] == {"email": "[redacted]", "kind": "x"}


def test_long_values_are_truncated():
    record = _record(note="x" * 400, items=list(range(20)))

    payload = json.loads(obs_logging.JSONLogFormatter().format(record))

    assert len(payload["note"]) == 257
    assert len(payload["items"]) == 11


def test_sampling_keeps_warnings(monkeypatch):
    monkeypatch.setattr(settings, "obs_log_sampling_rate_info", 0.0)
    sampler = obs_logging.InfoSamplingFilter()

    assert sampler.filter(_record(level=logging.WARNING))
    assert not sampler.filter(_record(level=logging.INFO))


def test_storage_failures_are_logged(caplog, storage, fake_redis):
    from schedle.infra.storage import StorageKind, load_collection
    from schedle.domain.social.models import FriendRecord

    fake_redis.set("friends_user1", "nope{")
    with caplog.at_level(logging.WARNING, logger="schedle.infra.storage"):
        load_collection(storage, "user1", StorageKind.FRIENDS, FriendRecord.from_record)

    (entry,) = [r for r in caplog.records if r.getMessage() == "storage_read_failure"]
    assert entry.reason == "malformed_json"
    assert entry.kind == "friends"


def test_log_context_scopes_fields():
    with obs_logging.log_context(session_id="s1", operation="add_event"):
        assert obs_logging.current_context() == {"session_id": "s1", "operation": "add_event"}
        with obs_logging.log_context(operation="update_event"):
            assert obs_logging.current_context()["operation"] == "update_event"
        assert obs_logging.current_context()["operation"] == "add_event"

    assert obs_logging.current_context() == {}


def test_unknown_context_field_is_rejected():
    with pytest.raises(KeyError):
        obs_logging.bind_context(route="/friends")


def test_context_session_is_logged(context, caplog):
    before = obs_logging.current_context()
    with caplog.at_level(logging.INFO, logger="schedle.context"):
        context.login("user1@example.com", settings.demo_password)

    (opened,) = [r for r in caplog.records if r.getMessage() == "session_opened"]
    assert opened.reason == "login"
    assert obs_logging.current_context()["user_id"] == "user1"
    assert len(obs_logging.current_context()["session_id"]) == 32
    context.logout()
    assert obs_logging.current_context() == before


def test_clear_context_drops_every_field():
    tokens = obs_logging.bind_context(session_id="s1", user_id="user1")
    try:
        obs_logging.clear_context()
        assert obs_logging.current_context() == {}
    finally:
        obs_logging.reset_context(tokens)
