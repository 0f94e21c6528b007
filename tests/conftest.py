import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import config
from app.db import Base, get_db
from app.main import app
from app.models.reward import Reward
from app.models.user import User


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    monkeypatch.setattr(config, "CLAIM_RETRY_BACKOFF_SECONDS", 0)
    monkeypatch.setattr(config, "CRON_SECRET_TOKEN", None)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(points=0, role="USER", historical_points=None):
        counter["n"] += 1
        user = User(
            email=f"user{counter['n']}@example.com",
            name=f"User {counter['n']}",
            role=role,
            points=points,
            historical_points=points if historical_points is None else historical_points,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_reward(db):
    def _make(points_cost=100, stock=None, is_active=True, name="Free coffee"):
        reward = Reward(name=name, points_cost=points_cost, stock=stock, is_active=is_active)
        db.add(reward)
        db.commit()
        return reward

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(role="ADMIN")


