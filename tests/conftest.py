"""
Shared pytest fixtures for all test modules.

Uses an in-memory SQLite database (StaticPool) so every test
function gets a clean, isolated database — no disk I/O, no state leakage.
External collaborators (storage, message generator, renderer, mailer) are
replaced with AsyncMocks for every test; tests reconfigure them as needed.
"""
import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from donation_desk.database import Base, get_db
from donation_desk import models
from donation_desk.services import lifecycle as lifecycle_module

PNG_BYTES = b"\x89PNG\r\n\x1a\n-fake-poster"


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


@pytest.fixture(autouse=True)
def collaborators():
    """
    Swap every external collaborator for a working mock:
    generator says "Thank you!", renderer returns PNG_BYTES, mailer succeeds,
    storage accepts everything and holds nothing.
    """
    storage = MagicMock()
    storage.put = AsyncMock(side_effect=lambda name, data: name)
    storage.get = AsyncMock(return_value=None)
    storage.get_url = MagicMock(side_effect=lambda ref: f"/media/{ref}")

    generator = AsyncMock()
    generator.generate = AsyncMock(return_value="Thank you for lighting up young minds.")

    renderer = AsyncMock()
    renderer.render = AsyncMock(return_value=PNG_BYTES)

    mailer = AsyncMock()
    mailer.send = AsyncMock(return_value=None)

    fakes = {
        "storage": storage,
        "generator": generator,
        "renderer": renderer,
        "mailer": mailer,
    }
    with patch.dict(lifecycle_module.COLLABORATORS, fakes):
        yield fakes


@pytest.fixture
def client(db):
    """
    FastAPI TestClient with the real DB dependency overridden to use
    the in-memory test session.  The TestClient is NOT used as a context
    manager so the lifespan hook (which touches the on-disk DB) is skipped.
    """
    from donation_desk.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helper — not a fixture — so any test file can import and call it directly.
# ---------------------------------------------------------------------------
def make_donation(
    db,
    donation_id: str,
    donor_name: str = "Asha Rao",
    donor_email: Optional[str] = "asha@example.org",
    donor_phone: Optional[str] = None,
    amount: Optional[Decimal] = Decimal("500"),
    show_amount: bool = True,
    cause: str = "education",
    status: str = "pending",
    created_at: Optional[datetime] = None,   # defaults to 1 hour ago
    screenshot_url: Optional[str] = None,
    ai_message: Optional[str] = None,
) -> models.Donation:
    if created_at is None:
        created_at = models.utcnow() - timedelta(hours=1)
    donation = models.Donation(
        id=donation_id,
        donor_name=donor_name,
        donor_email=donor_email,
        donor_phone=donor_phone,
        amount=amount,
        show_amount=show_amount,
        cause=cause,
        status=status,
        created_at=created_at,
        screenshot_url=screenshot_url,
    )
    if status == "issued":
        donation.ai_message = ai_message or "Your support keeps our classrooms open."
        donation.poster_issued_at = created_at + timedelta(minutes=30)
    db.add(donation)
    db.commit()
    db.refresh(donation)
    return donation
