"""Database models using SQLModel.

Defines the tables the reply backend reads from:
- Tenant: Multi-tenancy root (one bot operator)
- Rule / RuleGeneration / RuleRow: Versioned CSV rule tables
- Image: Named image assets with public URLs
- AutoReply: Keyword-triggered replies, plain text or ILE templates
"""

import datetime
import enum
import uuid
from typing import Any

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlmodel import Field, SQLModel


class ReplyType(str, enum.Enum):
    """How an auto-reply's payload is stored."""

    TEXT = "text"
    JSON = "json"


class MatchType(str, enum.Enum):
    """How an auto-reply keyword is compared with an incoming message."""

    EXACT = "exact"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _uuid_pk() -> Any:
    return Field(
        default_factory=uuid.uuid4,
        sa_column=Column(UUID(as_uuid=True), primary_key=True),
    )


def _created_at() -> Any:
    return Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), server_default=text("NOW()")),
    )


def _foreign_key(target: str) -> Any:
    return Field(
        sa_column=Column(
            UUID(as_uuid=True),
            ForeignKey(target, ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )


# =============================================================================
# Database Models
# =============================================================================


class Tenant(SQLModel, table=True):
    """Tenant model for multi-tenancy.

    Rules, images and auto-replies all belong to a tenant, ensuring
    data isolation between bot operators.
    """

    __tablename__ = "tenants"

    id: uuid.UUID = _uuid_pk()
    name: str = Field(min_length=1, max_length=255)
    created_at: datetime.datetime = _created_at()


class Rule(SQLModel, table=True):
    """A named rule table uploaded by a tenant as CSV."""

    __tablename__ = "rules"

    id: uuid.UUID = _uuid_pk()
    tenant_id: uuid.UUID = _foreign_key("tenants.id")
    name: str = Field(max_length=255)
    created_at: datetime.datetime = _created_at()


class RuleGeneration(SQLModel, table=True):
    """One uploaded version of a rule table.

    Only generations flagged active are eligible for ``tbl`` lookups; the
    two-argument form reads the most recently uploaded active one.
    """

    __tablename__ = "rule_generations"

    id: uuid.UUID = _uuid_pk()
    rule_id: uuid.UUID = _foreign_key("rules.id")
    generation_number: int = Field(ge=1)
    row_count: int = Field(default=0, ge=0)
    is_active: bool = Field(default=True)
    uploaded_at: datetime.datetime = _created_at()


class RuleRow(SQLModel, table=True):
    """One CSV row of a generation, stored as a JSON object of fields."""

    __tablename__ = "rule_rows"
    __table_args__ = (UniqueConstraint("generation_id", "row_number"),)

    id: uuid.UUID = _uuid_pk()
    generation_id: uuid.UUID = _foreign_key("rule_generations.id")
    row_number: int = Field(ge=0)
    data: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSONB, nullable=False))


class Image(SQLModel, table=True):
    """An uploaded image asset, addressable by exact name within a tenant."""

    __tablename__ = "images"
    __table_args__ = (UniqueConstraint("tenant_id", "name"),)

    id: uuid.UUID = _uuid_pk()
    tenant_id: uuid.UUID = _foreign_key("tenants.id")
    name: str = Field(max_length=512)
    url: str = Field(max_length=2048)
    created_at: datetime.datetime = _created_at()


class AutoReply(SQLModel, table=True):
    """Keyword-triggered reply.

    ``reply_json`` holds either a bare message array or an ILE envelope
    with ``__vars__`` and ``__messages__``.
    """

    __tablename__ = "auto_replies"

    id: uuid.UUID = _uuid_pk()
    tenant_id: uuid.UUID = _foreign_key("tenants.id")
    keyword: str = Field(max_length=255)
    reply_type: ReplyType = Field(default=ReplyType.TEXT)
    reply_text: str | None = Field(default=None)
    reply_json: Any | None = Field(default=None, sa_column=Column(JSONB))
    is_active: bool = Field(default=True)
    priority: int = Field(default=0)
    match_type: MatchType = Field(default=MatchType.CONTAINS)
    created_at: datetime.datetime = _created_at()
    updated_at: datetime.datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            server_default=text("NOW()"),
            onupdate=text("NOW()"),
        ),
    )
