"""Structured JSON logging for the Schedle core.

Every line carries the service identity plus whatever session fields are bound
in the current context (``session_id``, ``user_id``, ``operation``). Extra
fields passed through ``extra=`` are copied into the payload after redaction.
"""

from __future__ import annotations

import json
import logging
import random
from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from schedle.settings import settings

_LOGGER_NAME = "schedle"

# Order here is the order fields appear in the payload.
_CONTEXT_FIELDS: Dict[str, ContextVar[Optional[str]]] = {
	"session_id": ContextVar("obs_session_id", default=None),
	"user_id": ContextVar("obs_user_id", default=None),
	"operation": ContextVar("obs_operation", default=None),
}

# Message bodies, credentials and contact details never reach the log sink.
_REDACT_KEYS = ("password", "hash", "secret", "token", "email", "content", "message_body")
_REDACTED = "[redacted]"

_MAX_STRING_LENGTH = 256
_MAX_COLLECTION_ITEMS = 10

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime", "taskName"}


def bind_context(**fields: Optional[str]) -> Dict[str, Token]:
	"""Bind session fields for subsequent log lines; returns tokens for :func:`reset_context`."""
	tokens: Dict[str, Token] = {}
	for name, value in fields.items():
		if value is None:
			continue
		var = _CONTEXT_FIELDS.get(name)
		if var is None:
			raise KeyError(f"unknown log context field: {name}")
		tokens[name] = var.set(value)
	return tokens


def reset_context(tokens: Dict[str, Token]) -> None:
	for name, token in tokens.items():
		_CONTEXT_FIELDS[name].reset(token)


def clear_context() -> None:
	for var in _CONTEXT_FIELDS.values():
		var.set(None)


@contextmanager
def log_context(**fields: Optional[str]) -> Iterator[None]:
	tokens = bind_context(**fields)
	try:
		yield
	finally:
		reset_context(tokens)


def current_context() -> Dict[str, str]:
	bound: Dict[str, str] = {}
	for name, var in _CONTEXT_FIELDS.items():
		value = var.get()
		if value:
			bound[name] = value
	return bound


def _clip(value: Any) -> Any:
	if isinstance(value, str):
		if len(value) > _MAX_STRING_LENGTH:
			return value[:_MAX_STRING_LENGTH] + "…"
		return value
	if isinstance(value, dict):
		clipped: Dict[str, Any] = {}
		for position, (key, nested) in enumerate(value.items()):
			if position == _MAX_COLLECTION_ITEMS:
				clipped["…"] = f"+{len(value) - _MAX_COLLECTION_ITEMS} keys"
				break
			clipped[key] = redact(str(key), nested)
		return clipped
	if isinstance(value, (list, tuple, set, frozenset)):
		items = [_clip(item) for item in value]
		if len(items) > _MAX_COLLECTION_ITEMS:
			items = items[:_MAX_COLLECTION_ITEMS] + ["…"]
		return items
	return value


def redact(key: str, value: Any) -> Any:
	"""Mask ``value`` when ``key`` names sensitive data, otherwise clip it to a loggable size."""
	lowered = key.lower()
	if any(marker in lowered for marker in _REDACT_KEYS):
		return _REDACTED
	return _clip(value)


class JSONLogFormatter(logging.Formatter):
	"""Emit logs as JSON objects with structured fields."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, object] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		payload.update(current_context())
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in record.__dict__.items():
			if key not in _RECORD_ATTRS:
				payload[key] = redact(key, value)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Randomly sample info-level logs, keep warnings/errors."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = max(0.0, min(1.0, settings.obs_log_sampling_rate_info))
		if rate >= 1.0:
			return True
		return random.random() < rate


def configure_logging() -> logging.Logger:
	"""Configure root logger with JSON formatting and sampling."""
	root = logging.getLogger()
	root.handlers.clear()
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)
