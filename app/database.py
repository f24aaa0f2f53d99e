"""Database Connection and Session Management"""

import re
import ssl
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from app.config import settings


def build_database_url(raw_url: str) -> tuple[str, Dict[str, Any]]:
    """
    Normalize DATABASE_URL for the async drivers.

    Returns the async URL and the driver connect_args.
    """
    # Convert postgresql:// to postgresql+asyncpg:// for async support
    database_url = raw_url.replace("postgresql://", "postgresql+asyncpg://")
    connect_args: Dict[str, Any] = {}

    # asyncpg takes ssl=SSLContext rather than sslmode
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


def create_engine_from_url(raw_url: str) -> AsyncEngine:
    """Create the async engine; pool sizing only applies to server databases."""
    database_url, connect_args = build_database_url(raw_url)
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, connect_args=connect_args, future=True)

    # pool_pre_ping detects stale connections
    return create_async_engine(
        database_url,
        connect_args=connect_args,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        echo=settings.DEBUG,
        future=True,
    )


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = create_engine_from_url(settings.DATABASE_URL)

# Create async session factory
AsyncSessionLocal = create_session_factory(engine)

# Base class for declarative models
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function to get database session.

    Yields:
        AsyncSession: Database session

    Example:
        ```python
        @app.get("/courses")
        async def get_courses(db: AsyncSession = Depends(get_db)):
            # Use db session here
            pass
        ```
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
    """Initialize database tables (for development only)"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections"""
    await engine.dispose()
