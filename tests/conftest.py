from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from cabinbook.auth import Actor
from cabinbook.clock import get_today
from cabinbook.database import get_db, make_engine
from cabinbook.models import Base, Cabins, Locations
from cabinbook.services.slots import BookingConfig

TODAY = date(2024, 6, 1)
# midday UTC keeps the same calendar date in any local zone between -11h and +11h
CREATED = datetime(2024, 1, 1, 12, 0)


@pytest.fixture
def engine(tmp_path):
    # file database so that threads get separate connections
    engine = make_engine(f"sqlite:///{tmp_path / 'cabinbook.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def config():
    return BookingConfig(horizon_days=90, service_fee_rate=0.10, max_batch_size=10)


@pytest.fixture
def events(monkeypatch):
    """Captured (event_type, payload) pairs instead of Redis pushes."""
    sent = []
    monkeypatch.setattr(
        "cabinbook.services.slots.guard.emit_event",
        lambda event_type, payload: sent.append((event_type, payload)),
    )
    return sent


@pytest.fixture
def owner():
    return Actor(id="owner-1", role="owner")


@pytest.fixture
def other_owner():
    return Actor(id="owner-2", role="owner")


@pytest.fixture
def pro():
    return Actor(id="pro-p", role="professional")


@pytest.fixture
def pro_q():
    return Actor(id="pro-q", role="professional")


@pytest.fixture
def location(db, owner):
    obj = Locations(owner_id=owner.id, name="Centro", city="Lisboa")
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def add_cabin(db, location, name="Cabin A", **kwargs):
    fields = {"default_price": 50.0, "created_at": CREATED, **kwargs}
    obj = Cabins(location_id=location.id, name=name, **fields)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def cabin(db, location):
    return add_cabin(db, location)


@pytest.fixture
def client(session_factory, events):
    from cabinbook.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    # no context manager: lifespan would create tables in the configured database
    yield TestClient(app)
    app.dependency_overrides.clear()


def headers(actor: Actor) -> dict:
    return {"X-Actor-Id": actor.id, "X-Actor-Role": actor.role}
