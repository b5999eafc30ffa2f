from datetime import datetime, timedelta, timezone

import pytest

from schedle.domain.calendar.models import CalendarFilters, EventType
from schedle.domain.identity.schemas import PrivacySettingsPatch
from schedle.domain.notifications.models import NotificationType
from schedle.domain.social.models import FriendStatus
from schedle.main import create_context
from schedle.settings import settings

START = datetime(2024, 6, 3, 9, 0, tzinfo=timezone.utc)


def _login(context, user_id):
    user = context.login(f"{user_id}@example.com", settings.demo_password)
    assert user is not None
    return user


def test_operations_without_session_report_notice(context):
    assert context.send_friend_request("user2") is None

    (notice,) = context.drain_notices()
    assert notice.reason == "no_active_user"
    assert notice.variant == "destructive"
    assert context.get_friend_requests("user1") == []
    assert context.notifications == []


def test_domain_errors_become_notices(context):
    _login(context, "user1")
    received = []
    context._on_notice = received.append

    assert context.send_friend_request("user1") is None
    assert context.accept_friend_request("missing") is None

    assert [n.reason for n in context.drain_notices()] == ["self_request", "not_found"]
    assert [n.title for n in received] == ["Invalid request", "Request not found"]
    assert context.drain_notices() == []


def test_success_notice_names_target(context):
    _login(context, "user1")

    record = context.send_friend_request("user2")

    assert record.status == FriendStatus.PENDING
    (notice,) = context.drain_notices()
    assert notice.variant == "default"
    assert notice.description == "Friend request sent to User 2"


def test_failed_login_reports_notice(context):
    assert context.login("user1@example.com", "nope") is None

    assert context.drain_notices()[0].reason == "invalid_credentials"
    assert context.current_user is None
    assert context.session is None


def test_end_to_end_friend_flow(context):
    _login(context, "user1")
    record = context.send_friend_request("user2")
    context.logout()
    assert context.session is None

    _login(context, "user2")
    requests = context.get_friend_requests("user2")
    assert [r.id for r in requests] == [record.id]
    notes = context.notifications
    assert [(n.type, n.related_id) for n in notes] == [(NotificationType.FRIEND_REQUEST, record.id)]
    context.mark_notification_as_read(notes[0].id)
    assert context.notifications[0].is_read is True

    accepted = context.accept_friend_request(record.id)
    assert accepted.status == FriendStatus.ACCEPTED
    assert context.get_friend_requests("user2") == []

    context.switch_user("user1")
    assert context.session.user_id == "user1"
    assert context.has_friend_request("user1", "user2")
    assert [n.type for n in context.notifications] == [NotificationType.FRIEND_ACCEPTED]
    assert context.session.friends.are_friends("user1", "user2")

    assert context.remove_friend("user2") == 1
    assert not context.has_friend_request("user1", "user2")


def test_switching_users_never_leaks_state(context):
    _login(context, "user1")
    context.add_event(title="Secret", start=START, end=START + timedelta(hours=1))
    context.set_selected_event(context.events[0])
    assert len(context.events) == 1

    context.switch_user("user2")

    assert context.events == []
    assert context.notifications == []
    assert context.selected_event is None


def test_register_adds_welcome_notification(context):
    user = context.register("Sam Carter", "sam@example.com", "hunter22")

    assert context.current_user == user
    (welcome,) = context.notifications
    assert welcome.type == NotificationType.SYSTEM
    assert welcome.user_id == user.id


def test_invalid_registration_reports_notice(context):
    assert context.register("S", "bad", "1") is None
    assert context.drain_notices()[0].reason == "invalid_registration"


def test_calendar_state_and_filters(context):
    _login(context, "user1")
    work = context.add_event(title="Review", start=START, end=START + timedelta(hours=1), type=EventType.WORK)
    context.add_event(title="Gym", start=START, end=START + timedelta(hours=1))

    context.set_filters(CalendarFilters(show_personal_events=False))
    assert [e.id for e in context.visible_events] == [work.id]
    assert [e.id for e in context.events_on(START.date())] == [work.id]

    context.set_view_mode("week")
    assert context.view_mode == "week"
    with pytest.raises(ValueError):
        context.set_view_mode("decade")

    context.set_selected_event(work)
    assert context.update_event(work.id, title="Code review").title == "Code review"
    assert context.selected_event.title == "Code review"
    context.delete_event(work.id)
    assert context.selected_event is None


def test_invalid_event_reports_notice(context):
    _login(context, "user1")

    assert context.add_event(title="", start=START, end=START) is None

    notice = context.drain_notices()[0]
    assert notice.reason == "missing_title"
    assert notice.title == "Invalid event"


def test_malformed_event_fields_report_notices(context):
    _login(context, "user1")

    assert context.add_event(title="Party", start=START, end=START + timedelta(hours=1), type="party") is None
    event = context.add_event(title="Gym", start=START, end=START + timedelta(hours=1))
    assert context.update_event(event.id, start=None) is None
    assert context.add_event(title="Dinner", start=START, end=START + timedelta(hours=1), participants=["user4"]) is None

    reasons = [notice.reason for notice in context.drain_notices() if notice.variant == "destructive"]
    assert reasons == ["invalid_event", "invalid_event", "invite_forbidden"]
    assert context.session.events.get_event(event.id).start == START


def test_groups_messages_and_privacy(context):
    _login(context, "user1")
    group = context.create_group("Climbing", ["user2"])
    assert [g.id for g in context.groups] == [group.id]

    assert context.send_message("user2", "hi") is None
    assert context.drain_notices()[-1].reason == "not_friends"

    updated = context.update_privacy_settings(PrivacySettingsPatch(who_can_message="friends"))
    assert updated.who_can_message == "friends"
    assert context.session.privacy_settings().who_can_message == "friends"


def test_search_excludes_current_user(context):
    _login(context, "user1")

    assert "user1" not in {u.id for u in context.search_users("user")}
    assert context.search_users("") == []


def test_create_context_restores_session(fake_redis):
    first = create_context(fake_redis, restore=False)
    _login(first, "user5")
    first.close()

    second = create_context(fake_redis)
    try:
        assert second.current_user.id == "user5"
        assert second.session.user_id == "user5"
    finally:
        second.close()
