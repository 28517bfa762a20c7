"""Abstract base class for tenant-scoped lookups used by the ILE.

The Strategy Pattern allows the engine to resolve table rows and image
URLs against different storage backends interchangeably.
"""

import json
import uuid
from abc import ABC, abstractmethod
from typing import Any

TenantId = uuid.UUID | str


class LookupStoreError(Exception):
    """Raised when a lookup store fails to reach its storage.

    Misses are not errors; a store returns an empty value for them.
    """


def stringify_value(value: Any) -> str:
    """Render a stored value the way template output expects it.

    Args:
        value: A JSON-compatible value.

    Returns:
        The string form; ``None`` becomes an empty string.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


class BaseLookupStore(ABC):
    """Abstract base class for lookup storage strategies.

    Every method is parameterized by the tenant id; an implementation must
    never resolve a row or image owned by another tenant.

    Example:
        ```python
        class SqlLookupStore(BaseLookupStore):
            async def get_image_url_by_name(self, tenant_id, image_name) -> str:
                # SELECT url FROM images WHERE tenant_id = ... AND name = ...
                ...
        ```
    """

    @abstractmethod
    async def get_latest_active_generation_id(self, tenant_id: TenantId) -> str | None:
        """Return the most recently uploaded active generation of a tenant.

        Args:
            tenant_id: The owning tenant.

        Returns:
            The generation id, or None if the tenant has no active generation.

        Raises:
            LookupStoreError: If the storage backend fails.
        """

    @abstractmethod
    async def get_row_value(
        self,
        tenant_id: TenantId,
        generation_id: str | None,
        row_number: int,
        field_name: str,
    ) -> str:
        """Return one field of one rule row.

        Args:
            tenant_id: The owning tenant.
            generation_id: Generation to read, or None/empty for the latest
                active generation of the tenant.
            row_number: The row number within the generation.
            field_name: The column to read.

        Returns:
            The field value as a string, or "" on any miss.

        Raises:
            LookupStoreError: If the storage backend fails.
        """

    @abstractmethod
    async def get_image_url_by_name(self, tenant_id: TenantId, image_name: str) -> str:
        """Return the public URL of a tenant's image by exact name.

        Args:
            tenant_id: The owning tenant.
            image_name: The exact image name.

        Returns:
            The URL, or "" if no such image exists.

        Raises:
            LookupStoreError: If the storage backend fails.
        """
