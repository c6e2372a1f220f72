"""
SignalOne - Database Configuration
SQLAlchemy engine and session factory
"""
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Base class for ORM models
Base = declarative_base()

# Session factory, bound by configure_database()
SessionLocal = sessionmaker(autocommit=False, autoflush=False)

engine: Optional[Engine] = None


def build_engine(database_url: str) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=False, **kwargs)
    return create_engine(database_url, echo=False, pool_pre_ping=True)


def configure_database(database_url: str) -> Engine:
    """Bind the session factory to a fresh engine."""
    global engine
    engine = build_engine(database_url)
    SessionLocal.configure(bind=engine)
    return engine


def get_db():
    """Dependency for FastAPI - yields database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None):
    """Initialize database - create all tables."""
    # Register models on Base.metadata
    from .models import db_models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
