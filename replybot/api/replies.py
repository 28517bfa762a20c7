"""Auto-reply API routes.

Resolves the reply the LINE webhook would send for an incoming message,
without the LINE transport itself.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from replybot.api.deps import get_db, get_responder, get_tenant_id
from replybot.api.schemas import ResolveReplyRequest, ResolveReplyResponse
from replybot.db.models import AutoReply
from replybot.strategies.auto_reply import AutoReplyResponder, find_matching_auto_reply

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/replies", tags=["replies"])


async def get_active_auto_replies(
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_db),
) -> list[AutoReply]:
    """Load a tenant's active auto-replies, highest priority and newest first."""
    stmt = (
        select(AutoReply)
        .where(AutoReply.tenant_id == tenant_id, AutoReply.is_active.is_(True))
        .order_by(AutoReply.priority.desc(), AutoReply.created_at.desc())
    )

    try:
        result = await session.execute(stmt)
    except SQLAlchemyError as e:
        logger.error(f"Failed to load auto replies for tenant {tenant_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Auto replies unavailable",
        ) from e

    return list(result.scalars().all())


@router.post(
    "/resolve",
    response_model=ResolveReplyResponse,
    status_code=status.HTTP_200_OK,
)
async def resolve_reply(
    request: ResolveReplyRequest,
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    auto_replies: list[AutoReply] = Depends(get_active_auto_replies),
    responder: AutoReplyResponder = Depends(get_responder),
) -> ResolveReplyResponse:
    """Find the auto-reply for a message and build its outbound messages.

    Engine failures do not fail the request: the unprocessed template is
    returned and ``ile_error`` explains why.

    Args:
        request: The incoming message.
        tenant_id: Tenant ID from the X-Tenant-ID header.
        auto_replies: The tenant's active auto-replies in priority order.
        responder: Reply assembler bound to the request's engine.

    Returns:
        ResolveReplyResponse; ``matched`` is False when no keyword matched.
    """
    auto_reply = find_matching_auto_reply(auto_replies, request.message_text)
    if auto_reply is None:
        return ResolveReplyResponse(matched=False)

    result = await responder.build_messages(auto_reply, tenant_id)
    logger.info(
        f"Auto reply {auto_reply.id} matched for tenant {tenant_id}: "
        f"{len(result.messages)} messages, ile_error={result.ile_error}"
    )

    return ResolveReplyResponse(
        matched=True,
        auto_reply_id=auto_reply.id,
        keyword=auto_reply.keyword,
        messages=result.messages,
        ile_error=result.ile_error,
    )
