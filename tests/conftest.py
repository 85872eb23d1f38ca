"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from savings_gateway.api.main import create_app
from savings_gateway.api.dependencies import get_today
from savings_gateway.infrastructure.database.models import Base
from savings_gateway.infrastructure.database.session import get_db
from savings_gateway.domain.challenge import create_challenge
from savings_gateway.domain.models import Challenge, ChallengeConfig, ChallengeMode, Direction


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

START_DATE = date(2025, 1, 6)
TODAY = date(2025, 3, 3)  # Start of week 9


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def other_db(db: Session) -> Generator[Session, None, None]:
    """Second session on the same database, standing in for a concurrent writer"""
    other = TestingSessionLocal()
    try:
        yield other
    finally:
        other.close()


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a fixed calendar"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    return TestClient(app)


@pytest.fixture
def make_challenge() -> Callable[..., Challenge]:
    """Factory for template challenges with overridable config"""

    def _make(**overrides) -> Challenge:
        params = dict(
            mode=ChallengeMode.TEMPLATE,
            direction=Direction.STANDARD,
            total_weeks=4,
            start_date=START_DATE,
            target_amount_cents=100_00,
            title="Trip",
            icon="plane",
        )
        params.update(overrides)
        return create_challenge(ChallengeConfig(**params))

    return _make
