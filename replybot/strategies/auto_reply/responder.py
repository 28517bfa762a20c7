"""Auto-reply matching and reply assembly.

Picks the auto-reply for an incoming chat message and turns it into the
message list handed to the outbound sender. JSON replies are expanded by
the Inline Logic Engine; if the engine fails, the unprocessed template
is sent instead so the user still gets an answer.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from replybot.db.models import AutoReply, MatchType, ReplyType
from replybot.interfaces.lookup import TenantId
from replybot.strategies.ile.engine import MESSAGES_KEY, InlineLogicEngine

logger = logging.getLogger(__name__)


@dataclass
class ReplyResult:
    """Messages produced for one auto-reply.

    Attributes:
        messages: Outbound messages, already capped.
        ile_error: Engine failure message, if the fallback was used.
    """

    messages: list[Any] = field(default_factory=list)
    ile_error: str | None = None

    @property
    def success(self) -> bool:
        return self.ile_error is None


def keyword_matches(keyword: str, text: str, match_type: MatchType) -> bool:
    """Compare a keyword with a message, case-insensitively."""
    keyword = keyword.lower()
    text = text.lower()

    match match_type:
        case MatchType.EXACT:
            return text == keyword
        case MatchType.CONTAINS:
            return keyword in text
        case MatchType.STARTS_WITH:
            return text.startswith(keyword)
        case MatchType.ENDS_WITH:
            return text.endswith(keyword)
        case _:
            return False


def find_matching_auto_reply(replies: Iterable[AutoReply], text: str) -> AutoReply | None:
    """Return the first active reply whose keyword matches.

    Args:
        replies: Candidates, already ordered by priority then recency.
        text: The incoming message text.

    Returns:
        The matching reply, or None.
    """
    for reply in replies:
        if reply.is_active and keyword_matches(reply.keyword, text, MatchType(reply.match_type)):
            return reply
    return None


def unprocessed_messages(template: Any) -> list[Any]:
    """Messages of a template with no expressions expanded."""
    if isinstance(template, list):
        return template
    if isinstance(template, dict) and isinstance(template.get(MESSAGES_KEY), list):
        return template[MESSAGES_KEY]
    return []


class AutoReplyResponder:
    """Builds outbound messages for matched auto-replies."""

    def __init__(self, engine: InlineLogicEngine, max_messages: int = 5) -> None:
        """Initialize the responder.

        Args:
            engine: Engine used to expand JSON templates.
            max_messages: Cap on messages in one reply.
        """
        self.engine = engine
        self.max_messages = max_messages

    async def build_messages(self, auto_reply: AutoReply, tenant_id: TenantId) -> ReplyResult:
        """Turn an auto-reply into outbound messages.

        Args:
            auto_reply: The matched reply.
            tenant_id: The tenant the reply belongs to.

        Returns:
            A ReplyResult; ``ile_error`` is set when the fallback was used.
        """
        reply_type = ReplyType(auto_reply.reply_type)

        if reply_type is ReplyType.TEXT:
            if not auto_reply.reply_text:
                return ReplyResult()
            return ReplyResult(messages=[{"type": "text", "text": auto_reply.reply_text}])

        template = auto_reply.reply_json
        if template is None:
            return ReplyResult()

        try:
            messages = await self.engine.process_messages(template, tenant_id)
            result = ReplyResult(messages=messages)
        except Exception as e:
            logger.error(
                f"ILE processing failed for auto reply {auto_reply.id}: {e}; "
                "sending the unprocessed template",
                exc_info=True,
            )
            result = ReplyResult(messages=unprocessed_messages(template), ile_error=str(e) or type(e).__name__)

        if len(result.messages) > self.max_messages:
            logger.warning(
                f"Auto reply {auto_reply.id} produced {len(result.messages)} messages; "
                f"truncating to {self.max_messages}"
            )
            result.messages = result.messages[: self.max_messages]

        return result
