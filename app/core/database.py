"""
Database engine, session factory and declarative base.

Request handlers get a session from ``get_db``. Work that outlives a
request (live query refreshes, Celery tasks, drag drops) opens its own
short-lived session from ``SessionLocal``.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from app.core.config import settings


def _engine_options(url: str) -> dict:
    if make_url(url).get_backend_name() == "sqlite":
        # Live query refreshes and timers run on other threads
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Verify connections before using them
        "pool_size": 10,
        "max_overflow": 20,
    }


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    Dependency function to get database session.
    Used in FastAPI endpoints with Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Initialize database.

    Tables are created by Alembic ("alembic upgrade head"); this only makes
    sure every model is imported and registered on Base.metadata, and that
    the change feed session hooks are installed.
    """
    from app import models  # noqa: F401
    from app.crud import live_query  # noqa: F401
