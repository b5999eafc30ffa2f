from schedle.domain.events import DomainEvent, EventBus, FriendAccepted, FriendRequested


def _requested():
    return FriendRequested(actor_id="user1", request_id="r1", from_user_id="user1", to_user_id="user2")


def test_handlers_receive_matching_events_in_order():
    bus = EventBus()
    seen = []
    bus.subscribe(FriendRequested, lambda event: seen.append(("first", event.request_id)))
    bus.subscribe(FriendRequested, lambda event: seen.append(("second", event.request_id)))
    bus.subscribe(FriendAccepted, lambda event: seen.append(("accepted", event.request_id)))

    bus.publish(_requested())

    assert seen == [("first", "r1"), ("second", "r1")]
    assert [type(event) for event in bus.history] == [FriendRequested]


def test_base_class_subscription_sees_everything():
    bus = EventBus()
    seen = []
    bus.subscribe(DomainEvent, seen.append)

    bus.publish(_requested())
    bus.publish(FriendAccepted(actor_id="user2", request_id="r1", from_user_id="user1", to_user_id="user2"))

    assert [type(event).__name__ for event in seen] == ["FriendRequested", "FriendAccepted"]


def test_unsubscribe_and_clear():
    bus = EventBus()
    seen = []
    unsubscribe = bus.subscribe(FriendRequested, seen.append)

    unsubscribe()
    unsubscribe()
    bus.publish(_requested())
    assert seen == []

    bus.subscribe(FriendRequested, seen.append)
    bus.clear()
    bus.publish(_requested())
    assert seen == []
    assert len(bus.history) == 1


def test_history_keeps_only_recent_events():
    bus = EventBus(history_limit=3)

    for index in range(5):
        bus.publish(FriendRequested(actor_id="user1", request_id=f"r{index}", from_user_id="user1", to_user_id="user2"))

    assert [event.request_id for event in bus.history] == ["r2", "r3", "r4"]
