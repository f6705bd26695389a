from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from config import DATABASE_URL
from exceptions import StoreError, translate_integrity_error


def _enable_sqlite_foreign_keys(dbapi_connection, _) -> None:
    # sqlite ships with foreign keys disabled per connection
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


def create_engine(url: str) -> AsyncEngine:
    if url.startswith('sqlite'):
        engine = create_async_engine(url, query_cache_size=128)
        event.listen(engine.sync_engine, 'connect', _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(
        url,
        query_cache_size=128,
        pool_size=10,
        max_overflow=-1,
    )


_db_engine = create_engine(DATABASE_URL)


async def configure_engine(url: str) -> None:
    """
    Replace the engine used by all sessions, disposing of the previous one.
    """
    global _db_engine
    await _db_engine.dispose()
    _db_engine = create_engine(url)


def get_engine() -> AsyncEngine:
    return _db_engine


@asynccontextmanager
async def db_read():
    """
    Get a database session for reading.
    """
    async with AsyncSession(
        _db_engine,
        expire_on_commit=False,
        close_resets_only=False,
    ) as session:
        yield session


@asynccontextmanager
async def db_write():
    """
    Get a database session for writing, automatically committing on exit.

    Constraint violations and rejected values surface as StoreError.
    """
    async with AsyncSession(
        _db_engine,
        expire_on_commit=False,
        close_resets_only=False,
    ) as session:
        try:
            yield session
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            raise translate_integrity_error(e) from e
        except DataError as e:
            # e.g. a value longer than its VARCHAR column on PostgreSQL
            await session.rollback()
            raise StoreError(str(e.orig)) from e
