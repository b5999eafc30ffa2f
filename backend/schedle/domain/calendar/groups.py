"""Groups of users the active user schedules with."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional
from uuid import uuid4

from schedle.domain.calendar.exceptions import GroupNotFound, InvalidGroup
from schedle.domain.calendar.models import Group
from schedle.domain.identity.directory import UserDirectory
from schedle.infra.storage import StorageKind, UserStorage, load_collection, save_collection

logger = logging.getLogger(__name__)


class GroupStore:
	def __init__(self, user_id: str, *, storage: UserStorage, directory: UserDirectory) -> None:
		self._user_id = user_id
		self._storage = storage
		self._directory = directory
		self._groups: List[Group] = load_collection(storage, user_id, StorageKind.GROUPS, Group.from_record)

	@property
	def groups(self) -> List[Group]:
		return list(self._groups)

	def get_group(self, group_id: str) -> Group:
		for group in self._groups:
			if group.id == group_id:
				return group
		raise GroupNotFound()

	def create_group(self, name: str, member_ids: Iterable[str] = (), *, avatar: Optional[str] = None) -> Group:
		clean_name = (name or "").strip()
		if not clean_name:
			raise InvalidGroup("missing_name")
		members = [self._user_id]
		for member_id in member_ids:
			self._ensure_known(member_id)
			if member_id not in members:
				members.append(member_id)
		group = Group(id=str(uuid4()), name=clean_name, member_ids=members, avatar=avatar)
		self._groups.append(group)
		self._flush()
		logger.info("group_created", extra={"group_id": group.id, "members": len(members)})
		return group

	def add_member(self, group_id: str, user_id: str) -> Group:
		group = self.get_group(group_id)
		self._ensure_known(user_id)
		if user_id not in group.member_ids:
			group.member_ids.append(user_id)
			self._flush()
		return group

	def remove_member(self, group_id: str, user_id: str) -> Group:
		group = self.get_group(group_id)
		if user_id in group.member_ids:
			group.member_ids.remove(user_id)
			self._flush()
		return group

	def delete_group(self, group_id: str) -> Group:
		group = self.get_group(group_id)
		self._groups = [item for item in self._groups if item.id != group.id]
		self._flush()
		return group

	def _ensure_known(self, user_id: str) -> None:
		if self._directory.get(user_id) is None:
			raise InvalidGroup("unknown_member")

	def _flush(self) -> None:
		save_collection(self._storage, self._user_id, StorageKind.GROUPS, self._groups)
