"""Async engine, session factory and the declarative Base for the fee tables"""

import re
import ssl
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Dict

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from schoolfees.config import settings


def normalize_database_url(url: str) -> tuple[str, Dict[str, Any]]:
    """
    Map a plain postgresql:// URL onto the asyncpg driver.

    asyncpg takes ssl=SSLContext instead of sslmode, so sslmode is stripped
    from the query string and turned into connect_args. The managed database
    certificate is not verified, only encrypted.

    Returns:
        (url, connect_args)
    """
    database_url = url.replace("postgresql://", "postgresql+asyncpg://")
    connect_args: Dict[str, Any] = {}
    if re.search(r"[?&]sslmode=(require|required|verify-full)", database_url, re.I):
        ssl_ctx = ssl.create_default_context()
        ssl_ctx.check_hostname = False
        ssl_ctx.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = ssl_ctx
        database_url = re.sub(r"[?&]sslmode=[^&]+", "", database_url, flags=re.I)
        database_url = re.sub(r"\?&", "?", database_url).rstrip("?")
    if "?&" in database_url:
        database_url = database_url.replace("?&", "?")
    return database_url, connect_args


def build_engine(url: str) -> AsyncEngine:
    """Create the async engine; SQLite URLs (local runs) skip pool sizing."""
    database_url, connect_args = normalize_database_url(url)
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=settings.DEBUG)
    # pool_pre_ping detects stale managed-database connections
    return create_async_engine(
        database_url,
        connect_args=connect_args,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        echo=settings.DEBUG,
    )


engine = build_engine(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session.

    Services commit their own units of work; anything left pending when the
    request finishes is committed here, and any exception rolls it back.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """Create missing tables on a local database; deployments use Alembic."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Session for work outside a request (cron jobs, one-off scripts)."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
