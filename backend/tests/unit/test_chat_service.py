import pytest

from schedle.domain.chat.exceptions import EmptyMessage, MessageTooLong, MessagingForbidden, UnknownRecipient
from schedle.domain.chat.models import ConversationKey
from schedle.domain.chat.service import MESSAGE_MAX_LEN
from schedle.domain.identity import privacy
from schedle.domain.identity.schemas import PrivacySettingsPatch


@pytest.fixture
def friends_1_2(session_for):
    record = session_for("user1").friends.send_friend_request("user2")
    session_for("user2").friends.accept_friend_request(record.id)


def test_conversation_key_is_order_independent():
    key = ConversationKey.from_participants("user2", "user1")

    assert key == ConversationKey.from_participants("user1", "user2")
    assert key.conversation_id == "chat:user1:user2"
    assert key.participants() == ("user1", "user2")


def test_send_message_reaches_both_partitions(friends_1_2, session_for):
    alice = session_for("user1")

    message = alice.messages.send_message("user2", "  hi there  ")

    assert message.content == "hi there"
    assert [m.id for m in alice.messages.conversation("user2")] == [message.id]
    bob = session_for("user2")
    assert [m.content for m in bob.messages.conversation("user1")] == ["hi there"]
    assert bob.messages.last_message("user1").sender_id == "user1"


def test_reply_orders_conversation_oldest_first(friends_1_2, session_for):
    session_for("user1").messages.send_message("user2", "ping")
    session_for("user2").messages.send_message("user1", "pong")

    alice = session_for("user1")
    assert [m.content for m in alice.messages.conversation("user2")] == ["ping", "pong"]
    assert list(alice.messages.conversations()) == ["user2"]


def test_rejects_empty_and_oversized_messages(friends_1_2, session_for):
    alice = session_for("user1")

    with pytest.raises(EmptyMessage):
        alice.messages.send_message("user2", "   ")
    with pytest.raises(MessageTooLong):
        alice.messages.send_message("user2", "x" * (MESSAGE_MAX_LEN + 1))


def test_rejects_self_unknown_and_strangers(session_for):
    alice = session_for("user1")

    with pytest.raises(MessagingForbidden) as excinfo:
        alice.messages.send_message("user1", "me")
    assert excinfo.value.reason == "self_message"

    with pytest.raises(UnknownRecipient):
        alice.messages.send_message("ghost", "boo")

    with pytest.raises(MessagingForbidden) as excinfo:
        alice.messages.send_message("user3", "hello stranger")
    assert excinfo.value.reason == "not_friends"


def test_receiver_privacy_can_block_messages(friends_1_2, session_for, storage):
    privacy.update_privacy_settings(storage, "user2", PrivacySettingsPatch(who_can_message="none"))
    alice = session_for("user1")

    with pytest.raises(MessagingForbidden) as excinfo:
        alice.messages.send_message("user2", "hello")

    assert excinfo.value.reason == "privacy"
    assert alice.messages.conversation("user2") == []
