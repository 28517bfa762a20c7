"""Auto-reply strategies: keyword matching and reply assembly."""

from replybot.strategies.auto_reply.responder import (
    AutoReplyResponder,
    ReplyResult,
    find_matching_auto_reply,
    keyword_matches,
)

__all__ = [
    "AutoReplyResponder",
    "ReplyResult",
    "find_matching_auto_reply",
    "keyword_matches",
]
