"""
Engine and session factory construction.

The process entry point builds the engine once (see `courtshare.main.lifespan`)
and stores the session factory on `app.state`; routes receive sessions through
the `get_db` dependency. Nothing here connects at import time.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from courtshare.core.config import Settings


def build_engine(url: str, settings: Settings | None = None, echo: bool = False) -> AsyncEngine:
    if url.startswith("sqlite"):
        engine_kwargs = {"echo": echo}
        if url in ("sqlite+aiosqlite://", "sqlite+aiosqlite:///:memory:"):
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        engine = create_async_engine(url, **engine_kwargs)
        _enable_sqlite_savepoints(engine)
        return engine

    pool_kwargs = {}
    if settings is not None:
        pool_kwargs = {
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_timeout": settings.DB_POOL_TIMEOUT,
            "pool_recycle": settings.DB_POOL_RECYCLE,
        }
    return create_async_engine(url, echo=echo, pool_pre_ping=True, **pool_kwargs)


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    # pysqlite defers BEGIN, which breaks SAVEPOINT; take over transaction control.
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


def sync_database_url(settings: Settings) -> str:
    """
    URL for synchronous tooling (alembic). An explicit DATABASE_URL_SYNC wins;
    otherwise the async driver is dropped from DATABASE_URL.
    """
    if "DATABASE_URL_SYNC" in settings.model_fields_set:
        return settings.DATABASE_URL_SYNC
    url = make_url(settings.DATABASE_URL)
    return url.set(drivername=url.get_backend_name()).render_as_string(hide_password=False)


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
