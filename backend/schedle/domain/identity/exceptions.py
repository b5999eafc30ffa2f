"""Domain-level exceptions for the mock identity provider."""

from __future__ import annotations

from schedle.domain.common.errors import SchedleError


class IdentityError(SchedleError):
	reason = "identity_error"


class InvalidCredentials(IdentityError):
	reason = "invalid_credentials"


class EmailTaken(IdentityError):
	reason = "email_taken"


class UnknownUser(IdentityError):
	reason = "user_missing"


class NotAuthenticated(IdentityError):
	reason = "not_authenticated"


class InvalidProfile(IdentityError):
	reason = "invalid_profile"
