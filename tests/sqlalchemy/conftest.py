from __future__ import annotations

# SQLAlchemy adapter test fixtures
# Sync tests run against an in-memory sqlite database, async tests against
# the same through aiosqlite.
from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from factoria import set_adapter
from factoria.adapters.sqlalchemy import AsyncSqlalchemyAdapter, SqlalchemyAdapter
from tests.models import Base

DB_URL = "sqlite://"
ASYNC_DB_URL = "sqlite+aiosqlite://"


def enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(scope="function")
def engine() -> Generator[Engine, None, None]:
    sync_engine = create_engine(DB_URL, poolclass=StaticPool)
    event.listen(sync_engine, "connect", enable_foreign_keys)
    Base.metadata.create_all(sync_engine)
    try:
        yield sync_engine
    finally:
        sync_engine.dispose()


@pytest.fixture(scope="function")
def session(engine: Engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        try:
            yield session
        finally:
            session.rollback()


@pytest.fixture(scope="function")
def sqlalchemy_adapter(session: Session) -> SqlalchemyAdapter:
    adapter = SqlalchemyAdapter(session)
    set_adapter(adapter)
    return adapter


@pytest_asyncio.fixture(scope="function")
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(ASYNC_DB_URL, poolclass=StaticPool)
    event.listen(engine.sync_engine, "connect", enable_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def async_session(
    async_engine: AsyncEngine,
) -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSession(async_engine, expire_on_commit=False) as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def async_sqlalchemy_adapter(
    async_session: AsyncSession,
) -> AsyncSqlalchemyAdapter:
    adapter = AsyncSqlalchemyAdapter(async_session)
    set_adapter(adapter)
    return adapter
