"""
Shared pytest fixtures for all test modules.

Uses an in-memory SQLite database (StaticPool) so every test
function gets a clean, isolated database with no disk I/O.
The payment simulator is replaced with a zero-delay one whose outcome
each test controls.
"""
import pytest
from datetime import datetime
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from typing import Optional

from app.auth import create_token, hash_password
from app.database import Base, get_db
from app import models
from app.services import lifecycle
from app.services.notifier import get_notifier
from app.services.payments import PaymentSimulator, get_payment_simulator


# ---------------------------------------------------------------------------
# In-memory database engine shared across all fixtures in a test session.
# StaticPool forces all SQLAlchemy connections to reuse the same underlying
# sqlite3 connection, which is required for in-memory SQLite.
# ---------------------------------------------------------------------------
TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=TEST_ENGINE)

# bcrypt is slow; hash the shared test password once
TEST_PASSWORD = "secret123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture(autouse=True)
def reset_db():
    """Drop and recreate all tables before each test for full isolation."""
    Base.metadata.drop_all(bind=TEST_ENGINE)
    Base.metadata.create_all(bind=TEST_ENGINE)
    yield
    Base.metadata.drop_all(bind=TEST_ENGINE)


@pytest.fixture
def db(reset_db):
    """Yield a SQLAlchemy session backed by the in-memory test database."""
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


class FakeNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, to, subject, body):
        if self.fail:
            raise ConnectionError("SMTP unavailable")
        self.sent.append((to, subject, body))


@pytest.fixture
def simulator():
    """Zero-delay simulator; flip `simulator.outcome` to force a decline."""
    sim = PaymentSimulator(delay=0)
    sim.outcome = True
    sim.decide = lambda: sim.outcome
    return sim


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def client(db, simulator, notifier):
    """
    FastAPI TestClient with the real DB dependency overridden to use
    the in-memory test session.  The TestClient is NOT used as a context
    manager so the lifespan hook (which creates the on-disk DB) is skipped.
    """
    from app.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_simulator] = lambda: simulator
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers, not fixtures, so any test file can import and call them directly.
# ---------------------------------------------------------------------------
def make_user(
    db,
    email: str = "donor@example.com",
    name: str = "Asha Donor",
    role: str = "user",
    status: str = "active",
    user_type: str = "individual",
    created_at: Optional[datetime] = None,
) -> models.User:
    user = models.User(
        name=name,
        email=email,
        password_hash=TEST_PASSWORD_HASH,
        role=role,
        status=status,
        user_type=user_type,
    )
    if created_at is not None:
        user.created_at = created_at
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_admin(db, email: str = "admin@example.com") -> models.User:
    return make_user(db, email=email, name="Site Admin", role="admin")


def make_donation(
    db,
    donor: models.User,
    donation_type: str = "food",
    created_at: Optional[datetime] = None,
    **payload,
) -> models.Donation:
    if donation_type == "food":
        payload.setdefault("food_item", "Rice")
        payload.setdefault("quantity", "10 kg")
    if donation_type == "monetary":
        payload.setdefault("amount", 500.0)
    donation = lifecycle.create_donation(db, donor, donation_type, **payload)
    if created_at is not None:
        donation.created_at = created_at
        db.commit()
        db.refresh(donation)
    return donation


def auth_header(user: models.User) -> dict:
    return {"Authorization": f"Bearer {create_token(user.id)}"}
