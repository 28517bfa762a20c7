"""Unit tests for settings and the component factory."""

import json
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from replybot.core.config import Settings
from replybot.core.factory import ComponentFactory
from replybot.strategies.auto_reply import AutoReplyResponder
from replybot.strategies.lookups import InMemoryLookupStore, SqlLookupStore


class TestSettings:
    """Test suite for Settings validation."""

    def test_defaults(self):
        """Test the engine defaults."""
        settings = Settings(_env_file=None)

        assert settings.ile_max_passes == 100
        assert settings.ile_timeout_seconds == 5.0
        assert settings.max_reply_messages == 5

    def test_non_positive_timeout_disables_it(self):
        """Test that zero or negative timeouts mean no timeout."""
        assert Settings(_env_file=None, ile_timeout_seconds=0).ile_timeout_seconds is None
        assert Settings(_env_file=None, ile_timeout_seconds=-1).ile_timeout_seconds is None

    def test_log_level_is_uppercased(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_values(self):
        """Test that out-of-range values are rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, ile_max_passes=0)
        with pytest.raises(ValidationError):
            Settings(_env_file=None, lookup_backend="redis")


class TestComponentFactory:
    """Test suite for ComponentFactory."""

    @pytest.fixture
    def settings(self):
        return Settings(
            _env_file=None,
            lookup_backend="memory",
            ile_max_passes=7,
            ile_timeout_seconds=2.5,
            ile_trace=True,
            ile_max_nesting_depth=9,
            max_reply_messages=3,
        )

    def test_sql_store_requires_session(self, settings):
        """Test that the SQL backend is bound to a session."""
        factory = ComponentFactory(settings)
        session = MagicMock()

        store = factory.get_lookup_store(session, backend="sql")

        assert isinstance(store, SqlLookupStore)
        assert store.session is session
        with pytest.raises(ValueError, match="session"):
            factory.get_lookup_store(backend="sql")

    def test_memory_store_is_cached(self, settings):
        """Test that the in-memory store is shared until the cache is cleared."""
        factory = ComponentFactory(settings)

        store = factory.get_lookup_store()

        assert isinstance(store, InMemoryLookupStore)
        assert factory.get_lookup_store() is store
        factory.clear_cache()
        assert factory.get_lookup_store() is not store

    def test_memory_store_fixture(self, settings, tmp_path):
        """Test that the fixture path seeds the in-memory store."""
        path = tmp_path / "fixture.json"
        path.write_text(json.dumps({"t": {"images": {"a": "https://x/a.png"}}}), encoding="utf-8")
        settings.memory_fixture_path = path

        store = ComponentFactory(settings).get_lookup_store()

        assert store._images == {"t": {"a": "https://x/a.png"}}

    def test_unknown_backend(self, settings):
        with pytest.raises(ValueError, match="Unknown lookup backend"):
            ComponentFactory(settings).get_lookup_store(backend="redis")

    def test_engine_and_responder_use_settings(self, settings):
        """Test that engine limits come from settings."""
        factory = ComponentFactory(settings)

        engine = factory.get_engine(InMemoryLookupStore())
        responder = factory.get_responder(engine)

        assert engine.max_passes == 7
        assert engine.timeout_seconds == 2.5
        assert engine.trace is True
        assert engine.max_nesting_depth == 9
        assert isinstance(responder, AutoReplyResponder)
        assert responder.max_messages == 3
