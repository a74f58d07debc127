import os

# Calendar rules are asserted in UTC; the app's own engine stays in memory
os.environ["GYM_TIMEZONE"] = "UTC"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["TRANSACTION_MAX_ATTEMPTS"] = "3"

from datetime import datetime  # noqa: E402
from urllib.parse import quote  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from gym_agenda.auth import USER_HEADER  # noqa: E402
from gym_agenda.database import Base, get_db  # noqa: E402
from gym_agenda.domain.ledger.service import LedgerService  # noqa: E402
from gym_agenda.domain.notifications.gateway import PushBatchResult  # noqa: E402
from gym_agenda.domain.notifications.router import get_push_gateway  # noqa: E402
from gym_agenda.domain.schedule.service import ScheduleService  # noqa: E402
from gym_agenda.domain.users.service import UserService  # noqa: E402
from gym_agenda.main import app  # noqa: E402

# A Monday in ISO week 2026-W43
NOW = datetime(2026, 10, 19, 10, 0, 0)


class FakePushGateway:
    """Records every multicast batch; tokens in ``invalid`` are reported as unregistered"""

    def __init__(self):
        self.batches = []
        self.invalid = set()

    def send_multicast(self, tokens, data):
        self.batches.append((list(tokens), dict(data)))
        invalid = [t for t in tokens if t in self.invalid]
        return PushBatchResult(
            success_count=len(tokens) - len(invalid),
            failure_count=len(invalid),
            invalid_tokens=invalid,
        )


def as_user(name: str) -> dict:
    return {USER_HEADER: quote(name)}


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    ScheduleService(session).seed()
    LedgerService(session).ensure_bank()
    yield session
    session.close()


@pytest.fixture
def push_gateway():
    return FakePushGateway()


@pytest.fixture
def client(db, push_gateway):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_push_gateway] = lambda: push_gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def owner(db):
    return UserService(db).login("Mario", "owner", now=NOW)


@pytest.fixture
def anna(db):
    """Client registered on NOW having paid the first month"""
    return UserService(db).login("Anna", "client", has_paid=True, now=NOW)
