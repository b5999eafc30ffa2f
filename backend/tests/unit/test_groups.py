import pytest

from schedle.domain.calendar.exceptions import GroupNotFound, InvalidGroup
from schedle.domain.calendar.groups import GroupStore
from schedle.infra.storage import StorageKind


@pytest.fixture
def groups(storage, directory):
    return GroupStore("user1", storage=storage, directory=directory)


def test_create_group_includes_creator(groups, storage):
    group = groups.create_group("  Climbing  ", ["user2", "user3", "user2"])

    assert group.name == "Climbing"
    assert group.member_ids == ["user1", "user2", "user3"]
    assert storage.load("user1", StorageKind.GROUPS)[0]["member_ids"] == ["user1", "user2", "user3"]


def test_create_group_validation(groups):
    with pytest.raises(InvalidGroup) as excinfo:
        groups.create_group("  ")
    assert excinfo.value.reason == "missing_name"

    with pytest.raises(InvalidGroup) as excinfo:
        groups.create_group("Band", ["ghost"])
    assert excinfo.value.reason == "unknown_member"
    assert groups.groups == []


def test_members_can_be_added_and_removed(groups, storage, directory):
    group = groups.create_group("Band")

    groups.add_member(group.id, "user4")
    groups.add_member(group.id, "user4")
    groups.remove_member(group.id, "user1")

    reloaded = GroupStore("user1", storage=storage, directory=directory)
    assert reloaded.get_group(group.id).member_ids == ["user4"]


def test_delete_group(groups):
    group = groups.create_group("Band")

    groups.delete_group(group.id)

    assert groups.groups == []
    with pytest.raises(GroupNotFound):
        groups.delete_group(group.id)
