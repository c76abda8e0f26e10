"""Database engine and session management."""

from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.services.config import get_settings


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine for ``database_url``.

    SQLite (file or in-memory) shares one connection across threads so the
    API worker pool and tests see the same database.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    return create_engine(database_url, pool_pre_ping=True, echo=echo)


settings = get_settings()
engine = build_engine(settings.database_url, settings.database_echo)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine | None = None) -> None:
    """Create any missing tables (development and first start; use Alembic otherwise)."""
    from src.models import Base

    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


__all__ = [
    "build_engine",
    "engine",
    "SessionLocal",
    "init_db",
    "get_db",
]
