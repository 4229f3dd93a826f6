"""
SQLAlchemy engine and session management

Synchronous engine: the booking engine is called from worker threads
(FastAPI sync endpoints, the expiry sweeper), so each call opens a short
session and commits before returning.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


class Base(DeclarativeBase):
    pass


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on DateTime(timezone=True); stored values are always UTC"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def build_engine(url: str, *, echo: bool = False) -> Engine:
    kwargs: dict[str, Any] = {'echo': echo, 'future': True}
    if url.startswith('sqlite'):
        kwargs['connect_args'] = {'check_same_thread': False}
        if ':memory:' in url or url == 'sqlite://':
            # One shared connection, otherwise every checkout sees an empty database
            kwargs['poolclass'] = StaticPool
    else:
        kwargs['pool_pre_ping'] = settings.DB_POOL_PRE_PING
    return create_engine(url, **kwargs)


class Database:
    """
    Database class for dependency injection

    Owns one engine and a session factory. Repositories receive the
    bound ``session`` method and use it as a context manager.
    """

    def __init__(self, *, url: str | None = None, echo: bool | None = None) -> None:
        self._url = url or settings.DATABASE_URL
        self._echo = settings.DB_ECHO if echo is None else echo
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            Logger.base.info(f'🔗 [DB] Creating engine for {self._url.split("@")[-1]}')
            self._engine = build_engine(self._url, echo=self._echo)
        return self._engine

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Context manager for database sessions

        Commits on clean exit, rolls back on exception.
        """
        if self._session_factory is None:
            self._session_factory = sessionmaker(self.engine, expire_on_commit=False)
        with self._session_factory() as session:
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise

    def create_tables(self) -> None:
        """Create database tables if they don't exist"""
        # Models register themselves on Base.metadata when imported
        import src.service.ferry_booking.driven_adapter.model  # noqa: F401

        Base.metadata.create_all(self.engine, checkfirst=True)

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
