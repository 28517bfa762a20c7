"""FastAPI dependencies for dependency injection.

Provides reusable dependencies for routes including:
- Database sessions
- Tenant context
- Lookup store and Inline Logic Engine wiring
"""

import logging
import uuid
from collections.abc import AsyncGenerator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from replybot.core.config import Settings, get_settings
from replybot.core.factory import ComponentFactory, get_factory
from replybot.db.session import get_async_session
from replybot.interfaces.lookup import BaseLookupStore
from replybot.strategies.auto_reply import AutoReplyResponder
from replybot.strategies.ile import InlineLogicEngine

logger = logging.getLogger(__name__)


async def get_db(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions.

    Args:
        settings: Application settings.

    Yields:
        An async database session.
    """
    try:
        async for session in get_async_session(settings):
            yield session
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting database session: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database connection error",
        ) from e


async def get_tenant_id(
    x_tenant_id: str | None = Header(default=None, description="Tenant ID for multi-tenancy"),
) -> uuid.UUID:
    """Dependency for extracting the tenant ID from headers.

    Args:
        x_tenant_id: The tenant ID from the X-Tenant-ID header.

    Returns:
        The tenant UUID.

    Raises:
        HTTPException: If the tenant ID is missing or invalid.
    """
    if not x_tenant_id:
        logger.warning("X-Tenant-ID header is missing")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID header is required",
        )

    try:
        return uuid.UUID(x_tenant_id)
    except ValueError as e:
        logger.warning(f"Invalid tenant ID format: {x_tenant_id}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid tenant ID format",
        ) from e


async def get_lookup_store(
    session: AsyncSession = Depends(get_db),
    factory: ComponentFactory = Depends(get_factory),
) -> BaseLookupStore:
    """Dependency for the request's lookup store."""
    return factory.get_lookup_store(session)


async def get_engine(
    store: BaseLookupStore = Depends(get_lookup_store),
    factory: ComponentFactory = Depends(get_factory),
) -> InlineLogicEngine:
    """Dependency for an engine bound to the request's lookup store."""
    return factory.get_engine(store)


async def get_responder(
    engine: InlineLogicEngine = Depends(get_engine),
    factory: ComponentFactory = Depends(get_factory),
) -> AutoReplyResponder:
    return factory.get_responder(engine)
