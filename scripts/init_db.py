import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from casinoapi.config import settings  # noqa: E402
from casinoapi.database.connection import engine  # noqa: E402
from casinoapi.models import Base  # noqa: E402


def init_db():
    """Create every table."""
    try:
        Base.metadata.create_all(bind=engine)
        print(f"Database initialized successfully: {settings.DATABASE_URL}")
    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    init_db()
