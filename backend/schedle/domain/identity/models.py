"""Identity models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True, frozen=True)
class User:
	"""Immutable identity record; profile edits produce a new instance."""

	id: str
	name: str
	email: str
	avatar: Optional[str] = None

	@classmethod
	def from_record(cls, record: dict) -> "User":
		return cls(
			id=str(record["id"]),
			name=str(record["name"]),
			email=str(record["email"]),
			avatar=record.get("avatar"),
		)

	def to_record(self) -> dict:
		return {
			"id": self.id,
			"name": self.name,
			"email": self.email,
			"avatar": self.avatar,
		}
