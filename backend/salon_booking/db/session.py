"""
Database handle: engine, session factory and transaction scope.

One Database is constructed at process start (see create_app), shared by
the registry and the ledger, and disposed at shutdown.
"""

import logging
import re
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from salon_booking.core.exceptions import TransientStoreError

logger = logging.getLogger(__name__)

Base = declarative_base()


def mask_url_password(url: str) -> str:
    """Hide the password part of a database URL for logging."""
    return re.sub(r"(://[^:/?#]+):[^@]*@", r"\1:***@", url)


def build_engine(database_url: str) -> Engine:
    """Create an engine configured for the target backend."""
    url = make_url(database_url)

    if url.drivername.startswith("postgres"):
        return create_engine(
            database_url,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,  # Detects and refreshes stale connections
            pool_recycle=1800,
            pool_timeout=30,
            connect_args={
                "application_name": "salon_booking",
                "connect_timeout": 10,
            },
        )

    if url.drivername.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
        if url.database in (None, "", ":memory:"):
            # Single shared in-memory database so DDL persists across sessions
            engine = create_engine(
                database_url, connect_args=connect_args, poolclass=StaticPool
            )
        else:
            engine = create_engine(database_url, connect_args=connect_args)

        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(database_url, pool_pre_ping=True)


def _is_transient(exc: DBAPIError) -> bool:
    return isinstance(exc, OperationalError) or bool(
        getattr(exc, "connection_invalidated", False)
    )


class Database:
    """Explicitly constructed store handle injected into the services."""

    def __init__(self, database_url: str):
        self.url = database_url
        self.engine = build_engine(database_url)
        self._sessionmaker = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info(
            "Database engine created",
            extra={
                "context": {
                    "url": mask_url_password(database_url),
                    "dialect": self.engine.dialect.name,
                }
            },
        )

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Session scope that commits on success and rolls back on any error.

        Connectivity failures surface as TransientStoreError; every other
        exception propagates unchanged after the rollback.
        """
        session = self._sessionmaker()
        try:
            yield session
            session.commit()
        except DBAPIError as exc:
            session.rollback()
            if _is_transient(exc):
                logger.error(
                    "Transaction aborted by store failure",
                    extra={"context": {"error": str(exc.orig)}},
                )
                raise TransientStoreError("Storage temporarily unavailable") from exc
            raise
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        # Models must be imported so Base.metadata is populated
        from salon_booking.db import base  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        from salon_booking.db import base  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    def ping(self) -> bool:
        """Test database connection."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except DBAPIError as e:
            logger.error(
                "Database connection failed",
                extra={"context": {"error": str(e)}},
                exc_info=True,
            )
            return False

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed")
