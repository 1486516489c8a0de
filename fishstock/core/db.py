# fishstock/core/db.py

import ssl
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from fishstock.core.config import (
    DATABASE_URL,
    DB_TYPE,
    DB_POOL_SIZE,
    DB_MAX_OVERFLOW,
    DB_POOL_TIMEOUT,
    DB_SSL_VERIFY,
    DB_ECHO_POOL,
    APP_ENV,
)

Base = declarative_base()


# =====================================================
# ENGINE FACTORY
# =====================================================
def enable_sqlite_foreign_keys(dbapi_connection, _):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _postgres_options() -> dict:
    ssl_ctx = ssl.create_default_context()
    if not DB_SSL_VERIFY:
        ssl_ctx.check_hostname = False
        ssl_ctx.verify_mode = ssl.CERT_NONE

    return {
        "connect_args": {
            "ssl": ssl_ctx,
            # pgbouncer in transaction mode cannot hold prepared statements
            "statement_cache_size": 0,
            "prepared_statement_cache_size": 0,
        },
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
        "pool_timeout": DB_POOL_TIMEOUT,
        "pool_pre_ping": True,
    }


def build_engine(url: str, db_type: str, **overrides) -> AsyncEngine:
    """Create an async engine configured for the given backend.

    SQLite engines get foreign keys switched on for every connection, since
    ledger rows reference batches and locations.
    """
    if db_type == "postgres":
        options = _postgres_options()
    else:
        options = {"connect_args": {"check_same_thread": False}}
    options.update(overrides)

    eng = create_async_engine(url, echo=False, echo_pool=DB_ECHO_POOL, **options)

    if db_type == "sqlite":
        event.listen(eng.sync_engine, "connect", enable_sqlite_foreign_keys)
    return eng


def build_sessionmaker(eng: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        bind=eng,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


engine = build_engine(DATABASE_URL, DB_TYPE)
AsyncSessionLocal = build_sessionmaker(engine)


# =====================================================
# DEPENDENCY
# =====================================================
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


# registers every mapped table on Base.metadata
import fishstock.models  # noqa


# =====================================================
# SCHEMA MANAGEMENT (development and tests only)
# =====================================================
def _guard_schema_changes():
    if APP_ENV not in {"development", "test"}:
        raise RuntimeError(f"Schema changes from the app are forbidden in {APP_ENV}")


async def init_models(eng: AsyncEngine | None = None):
    _guard_schema_changes()
    async with (eng or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def reset_models(eng: AsyncEngine | None = None):
    _guard_schema_changes()
    async with (eng or engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
