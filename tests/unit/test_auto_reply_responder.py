"""Unit tests for auto-reply matching and reply assembly."""

import asyncio
import random
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from replybot.db.models import AutoReply, MatchType, ReplyType
from replybot.interfaces.lookup import LookupStoreError
from replybot.strategies.auto_reply import AutoReplyResponder, find_matching_auto_reply, keyword_matches
from replybot.strategies.auto_reply.responder import unprocessed_messages
from replybot.strategies.ile import InlineLogicEngine
from replybot.strategies.lookups import InMemoryLookupStore

TENANT_ID = uuid.UUID("00000000-0000-0000-0000-00000000000a")


def make_reply(keyword: str = "fortune", **overrides) -> AutoReply:
    """Create an AutoReply without touching the database."""
    values = {
        "tenant_id": TENANT_ID,
        "keyword": keyword,
        "reply_type": ReplyType.TEXT,
        "reply_text": f"reply to {keyword}",
        "match_type": MatchType.CONTAINS,
        "is_active": True,
    }
    values.update(overrides)
    return AutoReply(**values)


# =============================================================================
# Keyword Matching Tests
# =============================================================================


class TestKeywordMatching:
    """Test suite for keyword_matches and find_matching_auto_reply."""

    @pytest.mark.parametrize(
        "match_type,text,expected",
        [
            (MatchType.EXACT, "Fortune", True),
            (MatchType.EXACT, "my fortune", False),
            (MatchType.CONTAINS, "today's FORTUNE please", True),
            (MatchType.CONTAINS, "weather", False),
            (MatchType.STARTS_WITH, "fortune today", True),
            (MatchType.STARTS_WITH, "my fortune", False),
            (MatchType.ENDS_WITH, "my fortune", True),
            (MatchType.ENDS_WITH, "fortune today", False),
        ],
    )
    def test_match_types(self, match_type, text, expected):
        """Test each match type, case-insensitively."""
        assert keyword_matches("fortune", text, match_type) is expected

    def test_first_match_wins(self):
        """Test that candidate order decides between matches."""
        first = make_reply("fortune")
        second = make_reply("fort")

        assert find_matching_auto_reply([first, second], "fortune") is first
        assert find_matching_auto_reply([second, first], "fortune") is second

    def test_inactive_reply_is_skipped(self):
        """Test that inactive replies never match."""
        inactive = make_reply("fortune", is_active=False)
        active = make_reply("fortune", reply_text="active")

        assert find_matching_auto_reply([inactive, active], "fortune") is active

    def test_no_match(self):
        """Test that unmatched text returns None."""
        assert find_matching_auto_reply([make_reply("fortune")], "weather") is None
        assert find_matching_auto_reply([], "fortune") is None


# =============================================================================
# Reply Assembly Tests
# =============================================================================


class TestAutoReplyResponder:
    """Test suite for AutoReplyResponder."""

    @pytest.fixture
    def store(self):
        store = InMemoryLookupStore()
        store.add_generation(TENANT_ID, "gen-1", {1: {"name": "Sun"}})
        return store

    @pytest.fixture
    def responder(self, store):
        return AutoReplyResponder(InlineLogicEngine(store, rng=random.Random(0)), max_messages=5)

    def test_text_reply(self, responder):
        """Test that text replies become one text message."""
        result = asyncio.run(responder.build_messages(make_reply(reply_text="Hello ${name}"), TENANT_ID))

        assert result.messages == [{"type": "text", "text": "Hello ${name}"}]
        assert result.success

    def test_empty_text_reply(self, responder):
        """Test that an empty text reply sends nothing."""
        result = asyncio.run(responder.build_messages(make_reply(reply_text=None), TENANT_ID))

        assert result.messages == []

    def test_json_reply_is_expanded(self, responder):
        """Test that JSON replies go through the engine."""
        reply = make_reply(
            reply_type=ReplyType.JSON,
            reply_text=None,
            reply_json={
                "__vars__": [{"who": "${tbl(1, name)}"}],
                "__messages__": [{"type": "text", "text": "Hi ${who}"}],
            },
        )

        result = asyncio.run(responder.build_messages(reply, TENANT_ID))

        assert result.messages == [{"type": "text", "text": "Hi Sun"}]
        assert result.ile_error is None

    def test_missing_json_payload(self, responder):
        """Test that a JSON reply without a payload sends nothing."""
        reply = make_reply(reply_type=ReplyType.JSON, reply_text=None, reply_json=None)

        assert asyncio.run(responder.build_messages(reply, TENANT_ID)).messages == []

    def test_engine_failure_falls_back_to_template(self):
        """Test that engine errors send the unprocessed messages."""
        store = InMemoryLookupStore()
        store.get_image_url_by_name = AsyncMock(side_effect=LookupStoreError("storage down"))
        responder = AutoReplyResponder(InlineLogicEngine(store))
        messages = [{"type": "image", "originalContentUrl": "${get_url(sun_01)}"}]
        reply = make_reply(
            reply_type=ReplyType.JSON,
            reply_json={"__vars__": {}, "__messages__": messages},
        )

        result = asyncio.run(responder.build_messages(reply, TENANT_ID))

        assert result.messages == messages
        assert result.ile_error == "storage down"
        assert not result.success

    def test_unexpected_engine_error_also_falls_back(self):
        """Test that any engine exception triggers the fallback."""
        engine = MagicMock()
        engine.process_messages = AsyncMock(side_effect=RuntimeError())
        responder = AutoReplyResponder(engine)
        reply = make_reply(reply_type=ReplyType.JSON, reply_json=[{"type": "text", "text": "${x}"}])

        result = asyncio.run(responder.build_messages(reply, TENANT_ID))

        assert result.messages == [{"type": "text", "text": "${x}"}]
        assert result.ile_error == "RuntimeError"

    def test_messages_are_truncated(self, store):
        """Test the outbound message cap."""
        responder = AutoReplyResponder(InlineLogicEngine(store), max_messages=2)
        reply = make_reply(
            reply_type=ReplyType.JSON,
            reply_json=[{"type": "text", "text": str(i)} for i in range(4)],
        )

        result = asyncio.run(responder.build_messages(reply, TENANT_ID))

        assert result.messages == [{"type": "text", "text": "0"}, {"type": "text", "text": "1"}]

    @pytest.mark.parametrize(
        "template,expected",
        [
            ([{"type": "text"}], [{"type": "text"}]),
            ({"__vars__": {}, "__messages__": [{"type": "text"}]}, [{"type": "text"}]),
            ({"__vars__": {}}, []),
            ("text", []),
        ],
    )
    def test_unprocessed_messages(self, template, expected):
        """Test extraction of the fallback message list."""
        assert unprocessed_messages(template) == expected
