from datetime import datetime

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, StaticPool, create_engine, delete
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from event_api.database.db import Base
from event_api.main import app
from event_api.models.events import EventRow
from event_api.routes.deps import get_event_store
from event_api.stores.memory_store import MemoryEventStore
from event_api.stores.sql_store import SqlEventStore

# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine: Engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_payload(**overrides) -> dict:
    payload = {
        "title": "robotics WAR",
        "description": "Build a bot and fight.",
        "prizeMoney": {"first": 1000, "second": 500, "third": 200},
        "dateTime": "2099-01-01T00:00:00Z",
        "venue": "Hall A",
        "eventType": "Technical",
        "maxTeamSize": 4,
    }
    payload.update(overrides)
    return payload


def parse_dt(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Set up and tear down the database for the test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db: Session = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.execute(delete(EventRow))
        db.commit()
        db.close()


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def memory_store() -> MemoryEventStore:
    return MemoryEventStore()


@pytest.fixture
def sql_store(db_session, fake_redis) -> SqlEventStore:
    return SqlEventStore(db_session, fake_redis, lock_timeout=5, lock_blocking_timeout=0)


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Each test using this fixture runs once per backend."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def client(store):
    app.dependency_overrides[get_event_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def created_event(client: TestClient) -> dict:
    response = client.post("/api/events", json=make_payload())
    assert response.status_code == 201, f"Failed to create event. Response: {response.json()}"
    return response.json()["data"]
