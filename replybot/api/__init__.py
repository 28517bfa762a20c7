"""FastAPI routers and dependencies."""

from replybot.api.deps import (
    get_db,
    get_engine,
    get_lookup_store,
    get_responder,
    get_tenant_id,
)
from replybot.api.ile import router as ile_router
from replybot.api.replies import router as replies_router

__all__ = [
    "get_db",
    "get_engine",
    "get_lookup_store",
    "get_responder",
    "get_tenant_id",
    "ile_router",
    "replies_router",
]
