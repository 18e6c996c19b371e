import os

# must be set before the app modules read the environment
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["ENABLE_ALERT_SCHEDULER"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from energy_dashboard.database import Base, get_db
from energy_dashboard.models import ClassRoom, Device
from main import app

API = "/api/v1"


@pytest.fixture()
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


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # no context manager: the lifespan (create_all on the default engine, scheduler) stays off
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def room(db):
    row = ClassRoom(name="Meeting Room A", location="2nd floor", building="HQ", floor="2", capacity=12)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture()
def make_device(db, room):
    def _make(**overrides):
        fields = {
            "class_id": room.id,
            "device_name": "AC 1",
            "device_type": "AC",
            "power_rating": 1500,
        }
        fields.update(overrides)
        device = Device(**fields)
        db.add(device)
        db.commit()
        db.refresh(device)
        return device

    return _make
