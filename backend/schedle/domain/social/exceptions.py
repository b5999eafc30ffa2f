"""Domain-level exceptions for friend requests & friendships."""

from __future__ import annotations

from schedle.domain.common.errors import SchedleError


class SocialError(SchedleError):
	"""Base class for social feature errors."""


class FriendRequestNotFound(SocialError):
	reason = "not_found"


class DuplicateRelationship(SocialError):
	reason = "duplicate"


class AlreadyPending(DuplicateRelationship):
	reason = "already_pending"


class AlreadyFriends(DuplicateRelationship):
	reason = "already_friends"


class InvalidTarget(SocialError):
	reason = "invalid_target"


class SelfRequest(InvalidTarget):
	reason = "self_request"


class UnknownTarget(InvalidTarget):
	reason = "user_missing"


class NoActiveUser(SocialError):
	reason = "no_active_user"
