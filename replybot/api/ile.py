"""Inline Logic Engine API routes.

Lets the dashboard preview how a stored reply template expands for a
tenant, using the same engine the webhook uses.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from replybot.api.deps import get_engine, get_tenant_id
from replybot.api.schemas import RenderRequest, RenderResponse
from replybot.interfaces.lookup import LookupStoreError
from replybot.strategies.ile import InlineLogicEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ile", tags=["ile"])


@router.post(
    "/render",
    response_model=RenderResponse,
    status_code=status.HTTP_200_OK,
)
async def render_template(
    request: RenderRequest,
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    engine: InlineLogicEngine = Depends(get_engine),
) -> RenderResponse:
    """Expand a reply template for the calling tenant.

    Args:
        request: The template to render.
        tenant_id: Tenant ID from the X-Tenant-ID header.
        engine: Engine bound to the request's lookup store.

    Returns:
        RenderResponse with the expanded messages.

    Raises:
        HTTPException: 503 if a table or image lookup fails.
    """
    try:
        messages = await engine.process_messages(request.template, tenant_id)
    except LookupStoreError as e:
        logger.error(f"Template render failed for tenant {tenant_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Lookup storage unavailable",
        ) from e

    logger.info(f"Rendered template for tenant {tenant_id}: {len(messages)} messages")
    return RenderResponse(messages=messages)
