"""Privacy settings helpers."""

from __future__ import annotations

import logging
from typing import Any, Optional

from schedle.domain.identity import schemas
from schedle.infra.storage import StorageKind, StorageReadError, UserStorage

logger = logging.getLogger(__name__)

DEFAULT_PRIVACY = schemas.PrivacySettings().model_dump()


def _coerce_privacy(value: Optional[dict[str, Any]]) -> dict[str, Any]:
	merged = dict(DEFAULT_PRIVACY)
	if value:
		merged.update({k: v for k, v in value.items() if k in DEFAULT_PRIVACY})
	return merged


def get_privacy_settings(storage: UserStorage, user_id: str) -> schemas.PrivacySettings:
	try:
		raw = storage.load(user_id, StorageKind.PRIVACY)
	except StorageReadError:
		logger.warning("privacy_read_failure", extra={"user_id": user_id})
		raw = None
	if not isinstance(raw, dict):
		raw = None
	try:
		return schemas.PrivacySettings(**_coerce_privacy(raw))
	except ValueError:
		logger.warning("privacy_invalid_values", extra={"user_id": user_id})
		return schemas.PrivacySettings()


def update_privacy_settings(
	storage: UserStorage,
	user_id: str,
	patch: schemas.PrivacySettingsPatch,
) -> schemas.PrivacySettings:
	updates = patch.model_dump(exclude_none=True)
	current = get_privacy_settings(storage, user_id)
	if not updates:
		return current
	merged = current.model_dump()
	merged.update(updates)
	privacy = schemas.PrivacySettings(**merged)
	storage.save(user_id, StorageKind.PRIVACY, privacy.model_dump())
	logger.info("privacy_change", extra={"user_id": user_id, "fields": ",".join(sorted(updates))})
	return privacy


def audience_allows(audience: str, *, is_self: bool, is_friend: bool) -> bool:
	if is_self:
		return True
	if audience == "all":
		return True
	if audience == "friends":
		return is_friend
	return False
