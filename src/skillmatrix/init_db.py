"""Database initialization script."""

from pathlib import Path

from skillmatrix.config import settings
from skillmatrix.database import Base, engine
import skillmatrix.models  # noqa: F401  registers every table on Base.metadata


def init_database():
    """
    Initialize the database by creating all tables.

    Safe to run multiple times; existing tables are left untouched.
    """
    Path(settings.data_root).mkdir(parents=True, exist_ok=True)
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Database tables created successfully!")
    print(f"Tables: {', '.join(sorted(Base.metadata.tables.keys()))}")


if __name__ == "__main__":
    init_database()
