"""API request and response schemas.

Pydantic v2 models for API serialization/deserialization.
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field


# =============================================================================
# ILE Schemas
# =============================================================================


class RenderRequest(BaseModel):
    """Request for rendering a reply template."""

    template: Any = Field(
        description="A message array or an envelope with __vars__ and __messages__",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "template": {
                    "__vars__": [{"lucky": "${rand:1:100}"}],
                    "__messages__": [{"type": "text", "text": "Your number is ${lucky}"}],
                }
            }
        }
    }


class RenderResponse(BaseModel):
    """Rendered messages."""

    messages: list[Any] = Field(default_factory=list)


# =============================================================================
# Auto-reply Schemas
# =============================================================================


class ResolveReplyRequest(BaseModel):
    """An incoming chat message to answer."""

    message_text: str = Field(min_length=1, description="Text of the incoming message")


class ResolveReplyResponse(BaseModel):
    """The reply the webhook would send for a message."""

    matched: bool
    auto_reply_id: uuid.UUID | None = None
    keyword: str | None = None
    messages: list[Any] = Field(default_factory=list)
    ile_error: str | None = None


# =============================================================================
# Error Schemas
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(description="Error message")
    error_code: str | None = Field(default=None, description="Application-specific error code")
    extra: dict[str, Any] | None = Field(default=None, description="Additional error context")
