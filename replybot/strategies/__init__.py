"""Concrete strategy implementations."""

from replybot.strategies.auto_reply import AutoReplyResponder
from replybot.strategies.ile import InlineLogicEngine
from replybot.strategies.lookups import InMemoryLookupStore, SqlLookupStore

__all__ = [
    "AutoReplyResponder",
    "InlineLogicEngine",
    "InMemoryLookupStore",
    "SqlLookupStore",
]
