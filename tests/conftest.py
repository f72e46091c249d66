"""Pytest fixtures for testing"""

import os

# Must be set before finance_tracker.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finance_tracker.api.main import create_app
from finance_tracker.infrastructure.database.models import Base
from finance_tracker.infrastructure.database.session import get_db
from finance_tracker.domain.models import Quote
from finance_tracker.domain.exceptions import FinanceAPIError


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


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
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def sample_quote() -> Quote:
    """Accepted quote for a website redesign"""
    return Quote(
        id=7,
        client_id=3,
        job_title="Website Redesign",
        amount=Decimal("1500.00"),
        status="Accepted",
        currency="EUR",
        job_description="Full redesign of marketing site",
        valid_until=date(2024, 3, 1),
    )


@pytest.fixture
def quote_payload() -> dict:
    """Request body for creating a quote through the API"""
    return {
        "job_title": "Logo Design",
        "job_description": "Brand identity refresh",
        "amount": "100.00",
        "client_id": 1,
        "currency": "USD",
    }


class FakeGateway:
    """Records revenue / status calls; fails creations whose description is listed"""

    def __init__(self, fail_descriptions=(), fail_status_update=False):
        self.fail_descriptions = set(fail_descriptions)
        self.fail_status_update = fail_status_update
        self.created = []
        self.status_updates = []
        self.calls = []

    async def create_revenue(self, payload):
        self.calls.append("create_revenue")
        if payload["description"] in self.fail_descriptions:
            raise FinanceAPIError("Finance API error: 500")
        record = dict(payload, id=len(self.created) + 1)
        self.created.append(record)
        return record

    async def update_quote_status(self, quote_id, status):
        self.calls.append("update_quote_status")
        self.status_updates.append((quote_id, status))
        if self.fail_status_update:
            raise FinanceAPIError("Finance API timeout after 5.0s")
        return {"id": quote_id, "status": status}


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_gateway():
    return FakeGateway
