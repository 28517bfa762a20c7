"""Lookup store strategies."""

from replybot.strategies.lookups.memory import InMemoryLookupStore
from replybot.strategies.lookups.sql import SqlLookupStore

__all__ = [
    "InMemoryLookupStore",
    "SqlLookupStore",
]
