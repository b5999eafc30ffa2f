"""Pydantic schemas for identity flows and privacy settings."""

from __future__ import annotations

from typing import Annotated, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

Audience = Literal["all", "friends", "none"]


class RegisterRequest(BaseModel):
	name: Annotated[str, Field(min_length=2, max_length=80)]
	email: EmailStr
	password: Annotated[str, Field(min_length=6)]


class LoginRequest(BaseModel):
	email: EmailStr
	password: Annotated[str, Field(min_length=1)]


class ProfileUpdate(BaseModel):
	name: Optional[Annotated[str, Field(min_length=2, max_length=80)]] = None
	email: Optional[EmailStr] = None
	avatar: Optional[str] = None


class PrivacySettings(BaseModel):
	who_can_see_schedule: Audience = "friends"
	who_can_invite: Audience = "friends"
	who_can_message: Audience = "all"
	who_can_see_profile: Audience = "all"


class PrivacySettingsPatch(BaseModel):
	who_can_see_schedule: Optional[Audience] = None
	who_can_invite: Optional[Audience] = None
	who_can_message: Optional[Audience] = None
	who_can_see_profile: Optional[Audience] = None
