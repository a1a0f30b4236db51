"""Pytest fixtures for testing"""

import os

# Point the application engine at SQLite before it is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import datetime
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from energy_gateway.api.dependencies import get_now
from energy_gateway.api.main import create_app
from energy_gateway.domain.models import Record
from energy_gateway.infrastructure.database.models import Affiliate, Balance, Base, EnergyReading
from energy_gateway.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Pinned clock for every request made through the test client
NOW = datetime(2024, 2, 15, 12, 0, 0)


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
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a fixed clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: NOW
    return TestClient(app)


@pytest.fixture
def add_balance(db: Session):
    """Insert a balance row directly, bypassing the funds check"""
    counter = {"n": 0}

    def _add(user_id: int, amount: float, transaction_type: str, created_at: datetime, status: str = "completed"):
        counter["n"] += 1
        row = Balance(
            user_id=user_id,
            amount=amount,
            transaction_type=transaction_type,
            description=f"Seeded {transaction_type}",
            status=status,
            reference_id=f"SEED_{counter['n']:04d}",
            details={},
            created_at=created_at,
            updated_at=created_at,
        )
        db.add(row)
        db.commit()
        return row

    return _add


@pytest.fixture
def add_reading(db: Session):
    """Insert an energy reading with sensible defaults"""
    counter = {"n": 0}

    def _add(**overrides):
        counter["n"] += 1
        values = {
            "reading_number": f"RD-{counter['n']:04d}",
            "meter_id": 1,
            "customer_id": 1,
            "reading_type": "production",
            "reading_source": "automatic",
            "reading_status": "valid",
            "reading_timestamp": datetime(2024, 2, 1, 8, 0, 0),
            "reading_value": 100.0,
            "reading_unit": "kWh",
            "created_at": NOW,
            "updated_at": NOW,
        }
        values.update(overrides)
        row = EnergyReading(**values)
        db.add(row)
        db.commit()
        return row

    return _add


@pytest.fixture
def add_affiliate(db: Session):
    """Insert an affiliate with sensible defaults"""
    counter = {"n": 0}

    def _add(**overrides):
        counter["n"] += 1
        values = {
            "name": f"Affiliate {counter['n']}",
            "email": f"affiliate{counter['n']}@example.com",
            "type": "partner",
            "status": "active",
            "commission_rate": 10,
            "is_verified": False,
            "created_at": NOW,
            "updated_at": NOW,
        }
        values.update(overrides)
        row = Affiliate(**values)
        db.add(row)
        db.commit()
        return row

    return _add


@pytest.fixture
def sample_records() -> list[Record]:
    """Two months of yields with one investment in between"""
    return [
        Record(amount=1000, category="yield", timestamp=datetime(2024, 1, 10), status="completed"),
        Record(amount=-200, category="investment", timestamp=datetime(2024, 1, 20), status="completed"),
        Record(amount=1500, category="yield", timestamp=datetime(2024, 2, 5), status="completed"),
    ]
