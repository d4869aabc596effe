# session.py
# Configures the database connection and session management using SQLAlchemy.

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from mealplan.core.config import settings


def _connect_args(url: str) -> dict:
    # SQLite connections are shared across threads by the session pool
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None) -> None:
    """
    Create every table that does not exist yet.
    """
    # Register the models on Base.metadata before creating anything
    from mealplan import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


# Dependency to get a database session.
# Callers that wire the engine into a request cycle use this to get a session.
def get_db():
    """
    SQLAlchemy session generator.
    Yields a session and ensures it's closed afterward.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Commit everything done inside the block, or roll all of it back on the
    first error and re-raise it.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
