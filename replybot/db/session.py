"""Async PostgreSQL engine and sessions.

The reply path only reads (rules, images, auto-replies), so sessions are
opened per request and never committed here. Table creation and removal
are exposed for the lifespan hook and the ``scripts/`` helpers.
"""

import logging
from collections.abc import AsyncGenerator, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from replybot.core.config import Settings, get_settings
from replybot.db import models  # noqa: F401  registers every table on SQLModel.metadata

logger = logging.getLogger(__name__)

# Process-wide engine and session factory, created lazily
_engine: AsyncEngine | None = None
_async_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Return the shared async engine, creating it on first use.

    Args:
        settings: Optional settings. If None, uses global settings.
    """
    global _engine

    if _engine is None:
        settings = settings or get_settings()
        logger.info("Creating async database engine")
        _engine = create_async_engine(
            settings.database_url,
            echo=settings.log_level == "DEBUG",
            pool_pre_ping=True,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )

    return _engine


def get_session_maker(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    global _async_session_maker

    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            get_engine(settings),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _async_session_maker


async def get_async_session(settings: Settings | None = None) -> AsyncGenerator[AsyncSession, None]:
    """Yield one session for a request; rolled back if the request fails.

    Args:
        settings: Optional settings. If None, uses global settings.

    Yields:
        An async database session.
    """
    async with get_session_maker(settings)() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            logger.error(f"Database error during request: {e}", exc_info=True)
            await session.rollback()
            raise
        except Exception:
            await session.rollback()
            raise


async def _run_ddl(action: Callable, description: str, settings: Settings | None) -> None:
    engine = get_engine(settings)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(action)
    except SQLAlchemyError as e:
        logger.error(f"Failed to {description}: {e}", exc_info=True)
        raise

    logger.info(f"Finished: {description}")


async def create_all_tables(settings: Settings | None = None) -> None:
    """Create any missing tables with ``metadata.create_all``.

    Args:
        settings: Optional settings. If None, uses global settings.
    """
    await _run_ddl(SQLModel.metadata.create_all, "create database tables", settings)


async def drop_all_tables(settings: Settings | None = None) -> None:
    """Drop every table. This deletes all rules, images and auto-replies.

    Args:
        settings: Optional settings. If None, uses global settings.
    """
    logger.warning("Dropping all database tables")
    await _run_ddl(SQLModel.metadata.drop_all, "drop database tables", settings)


async def close_db() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _async_session_maker

    if _engine is None:
        return

    logger.info("Closing database engine")
    await _engine.dispose()
    _engine = None
    _async_session_maker = None
