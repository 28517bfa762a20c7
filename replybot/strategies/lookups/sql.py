"""SQL lookup store implementation.

Resolves ``tbl`` rows and image URLs from PostgreSQL through an async
SQLAlchemy session, with every query filtered by tenant.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from replybot.db.models import Image, Rule, RuleGeneration, RuleRow
from replybot.interfaces.lookup import BaseLookupStore, LookupStoreError, TenantId, stringify_value

logger = logging.getLogger(__name__)


def as_uuid(value: TenantId | None) -> uuid.UUID | None:
    """Coerce an id to a UUID; malformed ids become None (a miss)."""
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        return None


class SqlLookupStore(BaseLookupStore):
    """Lookup store backed by the rule, generation, row and image tables.

    Supports:
    - Tenant isolation: generations are reached through their owning rule
    - Latest-active generation resolution by upload time
    - Storage errors surfaced as LookupStoreError

    Attributes:
        session: The async session used for all queries.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the store.

        Args:
            session: An open async session; the caller owns its lifecycle.
        """
        self.session = session

    async def get_latest_active_generation_id(self, tenant_id: TenantId) -> str | None:
        tenant_uuid = as_uuid(tenant_id)
        if tenant_uuid is None:
            return None

        stmt = (
            select(RuleGeneration.id)
            .join(Rule, Rule.id == RuleGeneration.rule_id)
            .where(Rule.tenant_id == tenant_uuid, RuleGeneration.is_active.is_(True))
            .order_by(RuleGeneration.uploaded_at.desc())
            .limit(1)
        )

        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Failed to resolve latest active generation: {e}", exc_info=True)
            raise LookupStoreError(f"Generation lookup failed: {e}") from e

        generation_id = result.scalars().first()
        return str(generation_id) if generation_id is not None else None

    async def get_row_value(
        self,
        tenant_id: TenantId,
        generation_id: str | None,
        row_number: int,
        field_name: str,
    ) -> str:
        tenant_uuid = as_uuid(tenant_id)
        if tenant_uuid is None:
            return ""

        if not generation_id:
            generation_id = await self.get_latest_active_generation_id(tenant_uuid)
            if generation_id is None:
                return ""

        generation_uuid = as_uuid(generation_id)
        if generation_uuid is None:
            return ""

        stmt = (
            select(RuleRow.data)
            .join(RuleGeneration, RuleGeneration.id == RuleRow.generation_id)
            .join(Rule, Rule.id == RuleGeneration.rule_id)
            .where(
                RuleRow.generation_id == generation_uuid,
                RuleRow.row_number == row_number,
                Rule.tenant_id == tenant_uuid,
            )
            .limit(1)
        )

        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read rule row {row_number}: {e}", exc_info=True)
            raise LookupStoreError(f"Rule row lookup failed: {e}") from e

        data = result.scalars().first()
        if not isinstance(data, dict):
            return ""
        return stringify_value(data.get(field_name))

    async def get_image_url_by_name(self, tenant_id: TenantId, image_name: str) -> str:
        tenant_uuid = as_uuid(tenant_id)
        if tenant_uuid is None:
            return ""

        stmt = (
            select(Image.url)
            .where(Image.tenant_id == tenant_uuid, Image.name == image_name)
            .limit(1)
        )

        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Failed to resolve image '{image_name}': {e}", exc_info=True)
            raise LookupStoreError(f"Image lookup failed: {e}") from e

        return result.scalars().first() or ""
