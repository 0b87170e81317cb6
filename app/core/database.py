from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings
from app.core.errors import ConfigurationError

settings = get_settings()


def build_engine(database_url: str | None) -> Engine:
    """
    Create the SQLAlchemy engine for the configured URL.

    SQLite URLs (local runs, tests) share a single connection so that an
    in-memory database survives across sessions.
    """
    if not database_url:
        raise ConfigurationError(
            "DATABASE_URL is not configured",
            context={"setting": "database_url"},
        )

    if database_url.startswith("sqlite"):
        sqlite_engine = create_engine(
            database_url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        _enable_sqlite_savepoints(sqlite_engine)
        return sqlite_engine

    return create_engine(
        database_url,
        future=True,
        pool_pre_ping=True,
    )


def _enable_sqlite_savepoints(sqlite_engine: Engine) -> None:
    # pysqlite defers BEGIN on its own; let SQLAlchemy emit it so SAVEPOINT works
    @event.listens_for(sqlite_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


# Main SQLAlchemy engine
engine = build_engine(settings.database_url)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a DB session.

    Each request gets its own session; it is always closed afterwards.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
