"""
Database configuration and session management
Owns the engine/connection pool for the lifetime of the application
"""

import logging
import time
from contextlib import contextmanager
from typing import Generator, Optional

import sentry_sdk
from fastapi import Request
from sqlalchemy import create_engine, event, pool, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from allone.core.config import settings
from allone.core.exceptions import DuplicateException

logger = logging.getLogger(__name__)

# Create Base class for models
Base = declarative_base()


class Database:
    """
    Process-scoped database handle.

    Created once at startup, stored on ``app.state.database`` and disposed
    at shutdown. Request handlers get sessions through ``get_db``.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None

    def connect(self) -> None:
        """Create the engine and the session factory"""
        if self.engine is not None:
            return

        kwargs = {"echo": self.echo, "pool_pre_ping": True}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise every checkout sees an empty database
                kwargs["poolclass"] = pool.StaticPool
        else:
            kwargs.update(
                poolclass=pool.QueuePool,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_recycle=settings.DB_POOL_RECYCLE,
            )

        self.engine = create_engine(self.url, **kwargs)
        if self.url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        event.listen(self.engine, "checkout", _receive_checkout)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False
        )
        logger.info(f"Database engine created for {self.engine.url.render_as_string(hide_password=True)}")

    def create_tables(self) -> None:
        """Create tables if they don't exist"""
        # Import all models here to ensure they're registered
        import allone.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created successfully")

    def init(self) -> None:
        """Connect, create the schema and verify the connection"""
        try:
            self.connect()
            self.create_tables()
            with self.engine.connect() as conn:
                if conn.execute(text("SELECT 1")).scalar() == 1:
                    logger.info("Database connection successful")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            if settings.SENTRY_DSN:
                sentry_sdk.capture_exception(e)
            raise

    def dispose(self) -> None:
        """Release every pooled connection"""
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database connections released")
        self.engine = None
        self.SessionLocal = None

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Context manager for database session
        Use this for background tasks or non-request contexts
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    def check_connection(self) -> dict:
        """Check database connection health"""
        start_time = time.time()
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "response_time": round(time.time() - start_time, 4),
            }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {
                "status": "unhealthy",
                "error": str(e),
                "response_time": round(time.time() - start_time, 4),
            }


def _receive_checkout(dbapi_conn, connection_record, connection_proxy):
    logger.debug("Connection checked out from pool")


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    # SQLite ignores ON DELETE clauses unless this is set per connection
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency to get database session
    Ensures proper cleanup after request
    """
    db = get_database(request).SessionLocal()
    try:
        yield db
    except SQLAlchemyError as e:
        logger.error(f"Database error occurred: {e}")
        db.rollback()
        if settings.SENTRY_DSN:
            sentry_sdk.capture_exception(e)
        raise
    finally:
        db.close()


@contextmanager
def unique_write(db: Session, message: str) -> Generator[None, None, None]:
    """
    Guard a write against a unique constraint

    Services check for duplicates first; a concurrent writer can still win
    between that check and the flush, which is reported as a 409 as well.
    """
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Unique constraint rejected write: {e.orig}")
        raise DuplicateException(message) from e
