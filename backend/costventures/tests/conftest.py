"""
Shared fixtures: an in-memory SQLite database per test, users and a trip.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MAILGUN_API_KEY"] = ""
os.environ["SECRET_KEY"] = "test-secret-key"

from datetime import date

import httpx
import pytest
from fastapi.testclient import TestClient

from costventures.core.config import Settings
from costventures.core.security import create_access_token, get_password_hash
from costventures.db.session import Database
from costventures.main import create_app
from costventures.models.user import User
from costventures.schemas.trip import TripCreate
from costventures.services import trip_service
from costventures.services.mail_service import MailManager

PASSWORD = "correct-horse-battery"
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture
def test_settings():
    return Settings(DATABASE_URL="sqlite://", MAILGUN_API_KEY="test-key", MAILGUN_DOMAIN="mail.test.example.com")


@pytest.fixture
def database(test_settings):
    db = Database(test_settings)
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def store(database):
    s = database.store()
    yield s
    s.close()


@pytest.fixture
def file_database(tmp_path):
    """SQLite database in a file, so that every store gets its own connection."""
    db = Database(Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'ledger.db'}", MAILGUN_API_KEY=""))
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def two_stores(file_database):
    """Two stores on one database, standing in for two requests running side by side."""
    first, second = file_database.store(), file_database.store()
    yield first, second
    first.close()
    second.close()


class MailOutbox:
    """Records Mailgun requests; `fail` makes every request return 500."""

    def __init__(self):
        self.requests = []
        self.fail = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail:
            return httpx.Response(500, json={"message": "unavailable"})
        return httpx.Response(200, json={"id": "<msg@mail>", "message": "Queued. Thank you."})


@pytest.fixture
def outbox():
    return MailOutbox()


@pytest.fixture
def mail_manager(test_settings, outbox):
    manager = MailManager(test_settings, client=httpx.Client(transport=httpx.MockTransport(outbox.handler)))
    yield manager
    manager.close()


def add_user(store, username: str, is_activated: bool = True) -> User:
    with store.transaction() as db:
        user = User(
            username=username,
            email=f"{username}@example.com",
            hashed_password=PASSWORD_HASH,
            is_activated=is_activated,
        )
        db.add(user)
        db.flush()
        user_id = user.id
    return store.session.get(User, user_id)


@pytest.fixture
def make_user(store):
    """Factory for activated users."""
    def _make_user(username: str, is_activated: bool = True) -> User:
        return add_user(store, username, is_activated)
    return _make_user


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")


@pytest.fixture
def carol(make_user):
    return make_user("carol")


def new_trip(store, creator_id, *members, name="Alps", currency_code=None):
    """Trip created by `creator_id` with every member invited and accepted."""
    trip = trip_service.create_trip(store, creator_id, TripCreate(
        name=name,
        location="Innsbruck",
        start_date=date(2024, 7, 1),
        end_date=date(2024, 7, 14),
        currency_code=currency_code,
    ))
    for member_id in members:
        trip_service.invite_user(store, creator_id, trip.id, member_id)
        trip_service.accept_invite(store, member_id, trip.id)
    return trip


@pytest.fixture
def trip(store, alice, bob, carol):
    """Trip in EUR with alice (creator), bob and carol accepted."""
    return new_trip(store, alice.id, bob.id, carol.id)


@pytest.fixture
def app(test_settings, database, mail_manager):
    return create_app(test_settings, database=database, mail_manager=mail_manager)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def auth_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
