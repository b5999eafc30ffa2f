import pytest

from schedle.domain.identity.directory import DIRECTORY_KEY, UserDirectory
from schedle.domain.identity.exceptions import EmailTaken, InvalidCredentials, InvalidProfile, NotAuthenticated, UnknownUser
from schedle.domain.identity.provider import SESSION_KEY, IdentityProvider, credentials_key
from schedle.domain.identity.schemas import ProfileUpdate
from schedle.settings import settings


@pytest.fixture
def changes(identity):
    seen = []
    identity.add_listener(lambda previous, current, reason: seen.append((previous, current, reason)))
    return seen


def test_directory_generates_demo_users(directory):
    users = directory.all_users

    assert len(users) == 10
    assert users[0].id == "user1"
    assert users[0].name == "User 1"
    assert users[0].email == "user1@example.com"
    assert directory.is_generated("user10")


def test_search_matches_name_or_email_and_excludes(directory):
    assert {u.id for u in directory.search("user 1", exclude=["user1"])} == {"user10"}
    assert [u.id for u in directory.search("USER2@EXAMPLE")] == ["user2"]
    assert directory.search("   ") == []
    assert directory.search("nobody") == []


def test_login_with_demo_password(identity, storage, changes):
    user = identity.login("user3@example.com", settings.demo_password)

    assert user.id == "user3"
    assert identity.current_user == user
    assert storage.read(SESSION_KEY)["id"] == "user3"
    assert changes == [(None, user, "login")]


@pytest.mark.parametrize(
    "email, password",
    [
        ("user3@example.com", "wrong"),
        ("missing@example.com", "password123"),
        ("not-an-email", "password123"),
    ],
)
def test_login_rejects_bad_credentials(identity, email, password):
    with pytest.raises(InvalidCredentials):
        identity.login(email, password)

    assert identity.current_user is None


def test_register_hashes_password_and_signs_in(identity, storage, changes):
    user = identity.register("Sam Carter", "sam@example.com", "hunter22")

    stored_hash = storage.read(credentials_key("sam@example.com"))
    assert stored_hash.startswith("$argon2")
    assert "hunter22" not in stored_hash
    assert changes[-1][2] == "register"

    identity.logout()
    assert identity.login("sam@example.com", "hunter22").id == user.id
    identity.logout()
    with pytest.raises(InvalidCredentials):
        identity.login("sam@example.com", settings.demo_password)


def test_registered_users_survive_restart(identity, storage):
    user = identity.register("Sam Carter", "sam@example.com", "hunter22")

    reloaded = UserDirectory(storage, size=10)

    assert reloaded.get(user.id) == user
    assert isinstance(storage.read(DIRECTORY_KEY), list)


def test_register_rejects_taken_email_and_bad_input(identity):
    with pytest.raises(EmailTaken):
        identity.register("Someone", "user1@example.com", "hunter22")

    with pytest.raises(InvalidProfile) as excinfo:
        identity.register("Sam", "sam@example.com", "123")
    assert excinfo.value.reason == "invalid_registration"


def test_logout_clears_session(identity, storage, changes):
    user = identity.login("user1@example.com", settings.demo_password)

    identity.logout()

    assert identity.current_user is None
    assert storage.read(SESSION_KEY) is None
    assert changes[-1] == (user, None, "logout")
    identity.logout()
    assert len(changes) == 2


def test_restore_resumes_stored_session(identity, storage, directory):
    identity.login("user4@example.com", settings.demo_password)

    fresh = IdentityProvider(directory, storage)

    assert fresh.restore().id == "user4"
    assert fresh.current_user.id == "user4"


def test_restore_drops_unknown_session(storage, directory):
    storage.write(SESSION_KEY, {"id": "gone"})

    fresh = IdentityProvider(directory, storage)

    assert fresh.restore() is None
    assert storage.read(SESSION_KEY) is None


def test_switch_user(identity, changes):
    identity.switch_user("user2")
    identity.switch_user("user2")

    with pytest.raises(UnknownUser):
        identity.switch_user("ghost")

    assert [reason for _, _, reason in changes] == ["switch"]
    assert identity.current_user.id == "user2"


def test_update_profile_moves_credentials(identity, storage):
    identity.register("Sam Carter", "sam@example.com", "hunter22")

    updated = identity.update_profile(ProfileUpdate(email="samc@example.com", name="Samantha"))

    assert updated.name == "Samantha"
    assert storage.read(credentials_key("sam@example.com")) is None
    identity.logout()
    assert identity.login("samc@example.com", "hunter22").id == updated.id


def test_update_profile_requires_session(identity):
    with pytest.raises(NotAuthenticated):
        identity.update_profile(ProfileUpdate(name="Nobody"))


def test_is_authenticated_follows_session(identity):
    assert identity.is_authenticated is False

    identity.switch_user("user1")
    assert identity.is_authenticated is True

    identity.logout()
    assert identity.is_authenticated is False


def test_login_upgrades_outdated_hash(identity, storage):
    from argon2 import PasswordHasher

    identity.register("Sam Carter", "sam@example.com", "hunter22")
    identity.logout()
    weak = PasswordHasher(time_cost=1, memory_cost=8192, parallelism=1).hash("hunter22")
    storage.write(credentials_key("sam@example.com"), weak)

    identity.login("sam@example.com", "hunter22")

    upgraded = storage.read(credentials_key("sam@example.com"))
    assert upgraded != weak
    assert f"t={settings.password_time_cost}" in upgraded
