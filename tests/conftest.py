"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from oar_bills.api.main import create_app
from oar_bills.api.dependencies import get_autopay_runner, get_overdue_sweep
from oar_bills.infrastructure.database.models import Base
from oar_bills.infrastructure.database.repositories import BillRepository
from oar_bills.infrastructure.database.session import get_db
from oar_bills.domain.models import Bill, BillStatus, Frequency
from oar_bills.services.autopay import AutoPayBatchRunner
from oar_bills.services.overdue import OverdueSweep

# Test database: one shared in-memory connection
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Fresh schema per test; yields the session factory services use"""
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Create test database and session"""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db: Session, session_factory: sessionmaker) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_autopay_runner] = lambda: AutoPayBatchRunner(session_factory)
    app.dependency_overrides[get_overdue_sweep] = lambda: OverdueSweep(session_factory)
    return TestClient(app)


@pytest.fixture
def make_bill() -> Callable[..., Bill]:
    """Build a domain bill; amount_due defaults to base_amount"""

    def _make_bill(**overrides) -> Bill:
        fields = {
            "id": "bill-1",
            "title": "Electricity",
            "base_amount": 20000,
            "due_date": date(2025, 6, 20),
            "frequency": Frequency.MONTHLY,
            "status": BillStatus.PENDING,
        }
        fields.update(overrides)
        fields.setdefault("amount_due", fields["base_amount"])
        return Bill(**fields)

    return _make_bill


@pytest.fixture
def store_bill(db: Session, make_bill: Callable[..., Bill]) -> Callable[..., Bill]:
    """Persist a bill built by make_bill and commit it"""

    def _store_bill(**overrides) -> Bill:
        bill = BillRepository(db).create(make_bill(**overrides))
        db.commit()
        return bill

    return _store_bill


@pytest.fixture
def reload_bill(db: Session) -> Callable[[str], Bill]:
    """Read a bill's current persisted state, bypassing the session cache"""

    def _reload_bill(bill_id: str) -> Bill:
        db.expire_all()
        return BillRepository(db).get(bill_id)

    return _reload_bill
