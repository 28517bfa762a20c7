"""In-memory lookup store.

Keeps rule generations and images in dictionaries keyed by tenant. Used
for local development (``LOOKUP_BACKEND=memory``) and in tests.
"""

import datetime
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from replybot.interfaces.lookup import BaseLookupStore, TenantId, stringify_value

logger = logging.getLogger(__name__)


@dataclass
class MemoryGeneration:
    """One uploaded generation of a tenant's rule table.

    Attributes:
        id: Generation id as used in ``tbl(id, row, field)``.
        rows: Field mappings keyed by row number.
        is_active: Whether the generation is eligible for lookups.
        uploaded_at: Upload time; the newest active one is "latest".
    """

    id: str
    rows: dict[int, dict[str, Any]] = field(default_factory=dict)
    is_active: bool = True
    uploaded_at: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )


class InMemoryLookupStore(BaseLookupStore):
    """Lookup store holding everything in process memory."""

    def __init__(self) -> None:
        self._generations: dict[str, list[MemoryGeneration]] = {}
        self._images: dict[str, dict[str, str]] = {}

    def add_generation(
        self,
        tenant_id: TenantId,
        generation_id: str,
        rows: dict[int, dict[str, Any]],
        is_active: bool = True,
        uploaded_at: datetime.datetime | None = None,
    ) -> MemoryGeneration:
        generation = MemoryGeneration(id=str(generation_id), rows=dict(rows), is_active=is_active)
        if uploaded_at is not None:
            generation.uploaded_at = uploaded_at
        self._generations.setdefault(str(tenant_id), []).append(generation)
        return generation

    def add_image(self, tenant_id: TenantId, name: str, url: str) -> None:
        self._images.setdefault(str(tenant_id), {})[name] = url

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "InMemoryLookupStore":
        """Build a store from a fixture mapping.

        Expected shape::

            {"<tenant>": {
                "generations": [{"id": "g1", "is_active": true,
                                 "uploaded_at": "2024-01-01T00:00:00+00:00",
                                 "rows": {"1": {"name": "..."}}}],
                "images": {"sun_01": "https://..."}}}
        """
        store = cls()
        for tenant_id, tenant_data in data.items():
            for generation in tenant_data.get("generations", []):
                uploaded_at = generation.get("uploaded_at")
                store.add_generation(
                    tenant_id,
                    generation["id"],
                    {int(number): fields for number, fields in generation.get("rows", {}).items()},
                    is_active=generation.get("is_active", True),
                    uploaded_at=datetime.datetime.fromisoformat(uploaded_at) if uploaded_at else None,
                )
            for name, url in tenant_data.get("images", {}).items():
                store.add_image(tenant_id, name, url)
        return store

    @classmethod
    def from_json_file(cls, path: Path) -> "InMemoryLookupStore":
        logger.info(f"Loading in-memory lookup fixture: {path}")
        with open(path, encoding="utf-8") as f:
            return cls.from_mapping(json.load(f))

    async def get_latest_active_generation_id(self, tenant_id: TenantId) -> str | None:
        active = [g for g in self._generations.get(str(tenant_id), []) if g.is_active]
        if not active:
            return None
        return max(active, key=lambda g: g.uploaded_at).id

    async def get_row_value(
        self,
        tenant_id: TenantId,
        generation_id: str | None,
        row_number: int,
        field_name: str,
    ) -> str:
        if not generation_id:
            generation_id = await self.get_latest_active_generation_id(tenant_id)
            if generation_id is None:
                return ""

        for generation in self._generations.get(str(tenant_id), []):
            if generation.id == generation_id:
                row = generation.rows.get(row_number)
                return stringify_value(row.get(field_name)) if row else ""
        return ""

    async def get_image_url_by_name(self, tenant_id: TenantId, image_name: str) -> str:
        return self._images.get(str(tenant_id), {}).get(image_name, "")
