"""Unit tests for auth/store.py -- credential store queries.

Covers:
- create_user() assigns ids and stamps created_at
- get_by_username() is exact-match and returns None when absent
- list_users() returns registration order
- duplicate usernames raise DuplicateUserError
- ping() reports a reachable database
"""

import pytest

from auth.exceptions import DuplicateUserError
from auth.models import User
from auth.store import UserStore


def _user(username: str) -> User:
    return User(username=username, email=f"{username}@x.com", password_hash=f"$2b$04$digest-of-{username}")


@pytest.fixture
def store():
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


def test_create_and_lookup(store: UserStore) -> None:
    uid = store.create_user(_user("alice"))
    user = store.get_by_username("alice")
    assert user is not None
    assert user.id == uid
    assert user.email == "alice@x.com"
    assert user.password_hash == "$2b$04$digest-of-alice"
    assert user.created_at


def test_lookup_missing(store: UserStore) -> None:
    assert store.get_by_username("nobody") is None
    assert store.get_by_id(999) is None


def test_lookup_is_case_sensitive(store: UserStore) -> None:
    store.create_user(_user("alice"))
    assert store.get_by_username("Alice") is None


def test_list_users_in_registration_order(store: UserStore) -> None:
    for name in ("carol", "alice", "bob"):
        store.create_user(_user(name))
    assert [u.username for u in store.list_users()] == ["carol", "alice", "bob"]


def test_list_users_empty(store: UserStore) -> None:
    assert store.list_users() == []


def test_duplicate_username(store: UserStore) -> None:
    store.create_user(_user("alice"))
    with pytest.raises(DuplicateUserError):
        store.create_user(_user("alice"))
    assert len(store.list_users()) == 1


def test_ping(store: UserStore) -> None:
    assert store.ping() is True
    store.create_user(_user("alice"))
    assert store.ping() is True
