"""Abstract base classes for pluggable strategies."""

from replybot.interfaces.lookup import BaseLookupStore, LookupStoreError, TenantId, stringify_value

__all__ = [
    "BaseLookupStore",
    "LookupStoreError",
    "TenantId",
    "stringify_value",
]
