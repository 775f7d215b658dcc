# tests/conftest.py
"""Shared fixtures: a throwaway SQLite database per test, a controllable clock, and an API client."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.database import Base, create_tables, get_db
from app.dependencies import get_clock
from app.main import app
from app.models.car import Car, CarStatus
from app.security import create_access_token
from app.utils.clock import utcnow


class FakeClock:
    """Callable clock whose time tests move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'rental_test.db'}",
        connect_args={"check_same_thread": False},
    )
    create_tables(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 1, 0, 0))


@pytest.fixture
def make_car(db):
    def _make_car(**overrides):
        fields = dict(brand="Toyota", model="Corolla", year=2022, price_per_day=50.0,
                      status=CarStatus.AVAILABLE.value, created_at=utcnow(), updated_at=utcnow())
        fields.update(overrides)
        car = Car(**fields)
        db.add(car)
        db.commit()
        db.refresh(car)
        return car
    return _make_car


@pytest.fixture
def client(session_factory, clock):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_header():
    def _auth_header(user_id="user-1", is_admin=False):
        return {"Authorization": f"Bearer {create_access_token(user_id, is_admin=is_admin)}"}
    return _auth_header
