"""Direct messages between friends."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional
from uuid import uuid4

from schedle.domain.chat.exceptions import EmptyMessage, MessageTooLong, MessagingForbidden, UnknownRecipient
from schedle.domain.chat.models import ConversationKey, Message
from schedle.domain.identity import privacy
from schedle.domain.identity.directory import UserDirectory
from schedle.domain.social.service import FriendGraph
from schedle.infra.storage import StorageKind, UserStorage, load_collection, save_collection
from schedle.obs import metrics as obs_metrics
from schedle.time_helpers import utcnow

logger = logging.getLogger(__name__)

MESSAGE_MAX_LEN = 2000


class MessageStore:
	"""Messages involving the active user, oldest first, mirrored to the other party."""

	def __init__(
		self,
		user_id: str,
		*,
		storage: UserStorage,
		directory: UserDirectory,
		friends: FriendGraph,
	) -> None:
		self._user_id = user_id
		self._storage = storage
		self._directory = directory
		self._friends = friends
		self._messages: List[Message] = load_collection(storage, user_id, StorageKind.MESSAGES, Message.from_record)

	def send_message(self, receiver_id: str, content: str) -> Message:
		body = (content or "").strip()
		if not body:
			raise EmptyMessage()
		if len(body) > MESSAGE_MAX_LEN:
			raise MessageTooLong()
		receiver_id = str(receiver_id)
		if receiver_id == self._user_id:
			raise MessagingForbidden("self_message")
		if self._directory.get(receiver_id) is None:
			raise UnknownRecipient()
		is_friend = self._friends.are_friends(self._user_id, receiver_id)
		if not is_friend:
			raise MessagingForbidden("not_friends")
		receiver_privacy = privacy.get_privacy_settings(self._storage, receiver_id)
		if not privacy.audience_allows(receiver_privacy.who_can_message, is_self=False, is_friend=is_friend):
			raise MessagingForbidden("privacy")

		message = Message(
			id=str(uuid4()),
			sender_id=self._user_id,
			receiver_id=receiver_id,
			content=body,
			timestamp=utcnow(),
		)
		self._messages.append(message)
		save_collection(self._storage, self._user_id, StorageKind.MESSAGES, self._messages)
		theirs = load_collection(self._storage, receiver_id, StorageKind.MESSAGES, Message.from_record)
		theirs.append(message)
		save_collection(self._storage, receiver_id, StorageKind.MESSAGES, theirs)
		obs_metrics.inc_message_sent()
		logger.info(
			"message_sent",
			extra={"conversation_id": message.conversation.conversation_id, "message_id": message.id},
		)
		return message

	def conversation(self, other_user_id: str) -> List[Message]:
		key = ConversationKey.from_participants(self._user_id, other_user_id)
		return [message for message in self._messages if message.conversation == key]

	def last_message(self, other_user_id: str) -> Optional[Message]:
		messages = self.conversation(other_user_id)
		return messages[-1] if messages else None

	def conversations(self) -> Dict[str, Message]:
		"""Latest message per conversation partner, most recent first."""
		latest: Dict[str, Message] = {}
		for message in self._messages:
			other = message.receiver_id if message.sender_id == self._user_id else message.sender_id
			latest[other] = message
		return dict(sorted(latest.items(), key=lambda item: item[1].timestamp, reverse=True))
