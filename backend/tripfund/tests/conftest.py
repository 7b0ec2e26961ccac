"""
Shared fixtures: an in-memory database, a recording notifier and small
factories for users, trips and members.
"""
import os

# Settings are read at import time, so point them at SQLite before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import timedelta
from decimal import Decimal

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import tripfund.models  # noqa: F401
from tripfund.core.security import create_access_token
from tripfund.db.base import Base
from tripfund.db.session import get_db
from tripfund.models.trip import TripMember, MemberRole
from tripfund.models.user import User
from tripfund.schemas.trip import TripCreate
from tripfund.services.trip_service import TripService


class RecordingNotifier:
    """Keeps every notification in memory instead of delivering it."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    def notify(self, event, recipient_ids, payload):
        if self.fail:
            raise httpx.ConnectError("delivery service unreachable")
        self.sent.append((event, list(recipient_ids), dict(payload)))

    def events(self):
        return [event for event, _, _ in self.sent]

    def recipients(self, event):
        return [ids for e, ids, _ in self.sent if e == event]


class Factory:
    """Builds committed rows for tests."""

    def __init__(self, db):
        self.db = db

    def user(self, username: str) -> User:
        user = User(username=username, email=f"{username}@example.com", is_active=True)
        self.db.add(user)
        self.db.commit()
        return user

    def trip(self, owner: User, name: str = "Hangzhou weekend"):
        return TripService(self.db).create_trip(owner.id, TripCreate(name=name))

    def admin_member(self, trip) -> TripMember:
        return self.db.query(TripMember).filter(
            TripMember.trip_id == trip.id,
            TripMember.role == MemberRole.ADMIN
        ).order_by(TripMember.id).first()

    def member(self, trip, user: User, role: MemberRole = MemberRole.MEMBER,
               contribution: Decimal = Decimal("0.00")) -> TripMember:
        member = TripMember(
            trip_id=trip.id,
            user_id=user.id,
            is_virtual=False,
            role=role,
            contribution=contribution,
            is_active=True,
        )
        self.db.add(member)
        self.db.commit()
        return member

    def virtual(self, trip, display_name: str, contribution: Decimal = Decimal("0.00")) -> TripMember:
        member = TripMember(
            trip_id=trip.id,
            user_id=None,
            is_virtual=True,
            display_name=display_name,
            role=MemberRole.MEMBER,
            contribution=contribution,
            is_active=True,
        )
        self.db.add(member)
        self.db.commit()
        return member


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def client(session_factory, notifier):
    """TestClient wired to the test database and the recording notifier."""
    from tripfund.api.dependencies import get_notifier_dependency
    from tripfund.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier_dependency] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer header for a user, signed with the test secret."""
    def build(user: User) -> dict:
        token = create_access_token({"sub": str(user.id)}, expires_delta=timedelta(hours=1))
        return {"Authorization": f"Bearer {token}"}
    return build
