"""Domain-level exceptions for direct messages."""

from __future__ import annotations

from schedle.domain.common.errors import SchedleError


class ChatError(SchedleError):
	reason = "chat_error"


class EmptyMessage(ChatError):
	reason = "empty_message"


class MessagingForbidden(ChatError):
	reason = "messaging_forbidden"


class UnknownRecipient(ChatError):
	reason = "user_missing"


class MessageTooLong(ChatError):
	reason = "message_too_long"
