"""Timestamp helpers shared by the stored models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
	return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
	"""Treat naive datetimes as UTC."""
	if value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value


def parse_datetime(value: object) -> datetime:
	"""Rehydrate a stored timestamp (ISO-8601, optionally with a ``Z`` suffix)."""
	if isinstance(value, datetime):
		return ensure_aware(value)
	if not isinstance(value, str):
		raise ValueError(f"not a timestamp: {value!r}")
	text = value.strip()
	if text.endswith("Z"):
		text = text[:-1] + "+00:00"
	return ensure_aware(datetime.fromisoformat(text))


def parse_optional_datetime(value: object) -> Optional[datetime]:
	if value in (None, ""):
		return None
	return parse_datetime(value)


def format_datetime(value: Optional[datetime]) -> Optional[str]:
	if value is None:
		return None
	return ensure_aware(value).isoformat()
