import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("PERSISTENCE_RETRY_BACKOFF_SECONDS", "0")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from casinoapi.config import Settings  # noqa: E402
from casinoapi.core.security import create_access_token  # noqa: E402
from casinoapi.database.session import get_db  # noqa: E402
from casinoapi.games.cards import BLACKJACK_VALUES, HIGH_LOW_VALUES, Card  # noqa: E402
from casinoapi.models import Base  # noqa: E402


@pytest.fixture
def engine():
    """In-memory SQLite shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, PERSISTENCE_RETRY_BACKOFF_SECONDS=0)


@pytest.fixture
def app(db):
    from casinoapi.main import create_app

    app = create_app()
    app.dependency_overrides[get_db] = lambda: db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    def _make(user_id: str = "player-1", email: str = "player@example.com"):
        token = create_access_token({"sub": user_id, "email": email})
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def bj_card():
    """Blackjack-valued card by rank."""

    def _make(rank: str, suit: str = "♠") -> Card:
        return Card(rank=rank, value=BLACKJACK_VALUES[rank], suit=suit, suit_color="dark")

    return _make


@pytest.fixture
def hl_card():
    """High-Low-valued card by rank."""

    def _make(rank: str, suit: str = "♥") -> Card:
        return Card(rank=rank, value=HIGH_LOW_VALUES[rank], suit=suit, suit_color="bright")

    return _make
