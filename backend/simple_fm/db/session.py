"""
Database session management

The engine is owned by a Database object created in the application lifespan
instead of at import time, so tests and scripts can point it at any URL.
"""
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
import logging

from simple_fm.db.base import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Engine + session factory with an explicit connect/close lifecycle

    Usage:
        database = Database(settings.database_url)
        database.connect()
        with database.session() as db:
            ...
        database.close()
    """

    def __init__(self, url: str, *, echo: bool = False, pool_recycle: int = 3600):
        self.url = url
        self.echo = echo
        self.pool_recycle = pool_recycle
        self.engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def is_connected(self) -> bool:
        return self.engine is not None

    def connect(self, create_tables: bool = False) -> None:
        """Create the engine and, optionally, any missing tables."""
        if self.engine is not None:
            return

        url = make_url(self.url)
        logger.info(
            "Database connection",
            extra={"driver": url.drivername, "host": url.host, "database": url.database},
        )

        engine_kwargs = {
            "echo": self.echo,
            "pool_pre_ping": True,  # Verify connections before using
        }
        if url.get_backend_name() == "sqlite":
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                # One shared connection, otherwise every thread sees an empty database
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_recycle"] = self.pool_recycle

        self.engine = create_engine(self.url, **engine_kwargs)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

        if create_tables:
            # Import models so their tables are registered on Base.metadata
            from simple_fm import models  # noqa: F401

            Base.metadata.create_all(bind=self.engine)

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        self._session_factory = None
        logger.info("Database connection closed")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that is always closed afterwards."""
        if self._session_factory is None:
            raise RuntimeError("Database.connect() must be called before opening sessions")
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()


def get_db(request: Request) -> Iterator[Session]:
    """
    Dependency for getting database session

    Usage in FastAPI endpoints:
        @router.get("/")
        def list_filaments(db: Session = Depends(get_db)):
            ...
    """
    database: Database = request.app.state.database
    with database.session() as db:
        yield db
