"""Pydantic views over friend records, joined with the user directory."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class FriendRow(BaseModel):
	request_id: str
	user_id: str
	friend_id: str
	status: Literal["pending", "accepted", "declined"]
	created_at: datetime
	friend_name: Optional[str] = None
	friend_email: Optional[str] = None
	friend_avatar: Optional[str] = None


class FriendRequestView(BaseModel):
	id: str
	from_user_id: str
	to_user_id: str
	status: Literal["pending", "accepted", "declined"]
	created_at: datetime
	from_name: Optional[str] = None
	from_avatar: Optional[str] = None
	to_name: Optional[str] = None
	to_avatar: Optional[str] = None


RelationshipStatus = Literal["friends", "request_sent", "request_received", "none"]
