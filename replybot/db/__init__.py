"""Database models and session management."""

from replybot.db.models import (
    AutoReply,
    Image,
    MatchType,
    ReplyType,
    Rule,
    RuleGeneration,
    RuleRow,
    Tenant,
)
from replybot.db.session import (
    AsyncSession,
    close_db,
    create_all_tables,
    drop_all_tables,
    get_async_session,
)

__all__ = [
    # Models
    "Tenant",
    "Rule",
    "RuleGeneration",
    "RuleRow",
    "Image",
    "AutoReply",
    "ReplyType",
    "MatchType",
    # Session
    "AsyncSession",
    "get_async_session",
    "create_all_tables",
    "drop_all_tables",
    "close_db",
]
