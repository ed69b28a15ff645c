"""Pytest fixtures for testing"""

import pytest
from datetime import datetime
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from meinha_score.api.main import create_app
from meinha_score.api.dependencies import get_clock
from meinha_score.infrastructure.database.models import Base, DebtRecord, UserRecord
from meinha_score.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Fixed "now" for every test; overdue penalties depend on it
NOW = datetime(2026, 3, 15, 12, 0)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


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
def client(db: Session, clock) -> TestClient:
    """Create FastAPI test client with test database and a frozen clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    return TestClient(app)


@pytest.fixture
def seeded_db(db: Session) -> Session:
    """
    Small ledger:
    - d1: alice lends bob 100, paid on the due date
    - d2: carol lends bob 100, still open and 73 days overdue
    """
    db.add_all(
        [
            UserRecord(id="alice", username="alice", name="Alice Souza"),
            UserRecord(id="bob", username="bob", name="Bob Lima"),
            UserRecord(id="carol", username="carol", name="Carol Dias"),
        ]
    )
    db.flush()
    db.add_all(
        [
            DebtRecord(
                id="d1",
                creditor_id="alice",
                debtor_id="bob",
                amount=100.0,
                status="PAID",
                due_date=datetime(2026, 3, 5),
                created_at=datetime(2026, 3, 1, 10, 0),
                updated_at=datetime(2026, 3, 5, 15, 0),
            ),
            DebtRecord(
                id="d2",
                creditor_id="carol",
                debtor_id="bob",
                amount=100.0,
                status="OPEN",
                due_date=datetime(2026, 1, 1),
                created_at=datetime(2025, 12, 20, 9, 0),
            ),
        ]
    )
    db.commit()
    return db
