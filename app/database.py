"""
Database engine and session handling.

PostgreSQL in production; SQLite is supported for local runs and tests.
"""

from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from app.config import DATABASE_URL

IS_SQLITE = DATABASE_URL.startswith("sqlite")

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    # FastAPI runs sync routes in a threadpool
    connect_args={"check_same_thread": False} if IS_SQLITE else {}
)

if IS_SQLITE:
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # ON DELETE CASCADE / SET NULL are ignored by SQLite unless enabled per connection
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


class Base(DeclarativeBase):
    pass


def get_db():
    """
    FastAPI dependency: one session per request, closed afterwards.

    Services commit their own work; nothing is committed here.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope():
    """Session for scripts run outside a request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
