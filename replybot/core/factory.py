"""Component Factory for strategy instantiation.

The Factory Pattern allows the application to instantiate
different strategy implementations at runtime based on
configuration or environment variables.
"""

import logging
import random

from sqlalchemy.ext.asyncio import AsyncSession

from replybot.core.config import Settings, get_settings
from replybot.interfaces.lookup import BaseLookupStore
from replybot.strategies.auto_reply import AutoReplyResponder
from replybot.strategies.ile import InlineLogicEngine
from replybot.strategies.lookups import InMemoryLookupStore, SqlLookupStore

logger = logging.getLogger(__name__)


class ComponentFactory:
    """Factory for creating component instances based on configuration.

    Example:
        ```python
        factory = ComponentFactory(get_settings())

        store = factory.get_lookup_store(session)
        engine = factory.get_engine(store)
        messages = await engine.process_messages(template, tenant_id)
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the factory with optional settings.

        Args:
            settings: Application settings. If None, uses global settings.
        """
        self._settings = settings or get_settings()
        self._memory_store_cache: InMemoryLookupStore | None = None

    def get_lookup_store(
        self,
        session: AsyncSession | None = None,
        backend: str | None = None,
    ) -> BaseLookupStore:
        """Get a lookup store for one request.

        SQL stores are bound to the caller's session and never cached; the
        in-memory store is shared.

        Args:
            session: Database session, required for the SQL backend.
            backend: The backend to use. If None, uses settings.

        Returns:
            A BaseLookupStore implementation instance.

        Raises:
            ValueError: If the backend is unknown or a session is missing.
        """
        backend = backend or self._settings.lookup_backend

        match backend:
            case "sql":
                if session is None:
                    raise ValueError("A database session is required for the SQL lookup store")
                return SqlLookupStore(session)
            case "memory":
                if self._memory_store_cache is None:
                    logger.info("Instantiating in-memory lookup store")
                    fixture = self._settings.memory_fixture_path
                    self._memory_store_cache = (
                        InMemoryLookupStore.from_json_file(fixture) if fixture else InMemoryLookupStore()
                    )
                return self._memory_store_cache
            case _:
                raise ValueError(
                    f"Unknown lookup backend: {backend}. "
                    f"Valid options: 'sql', 'memory'"
                )

    def get_engine(self, store: BaseLookupStore, rng: random.Random | None = None) -> InlineLogicEngine:
        """Get an Inline Logic Engine configured from settings.

        Args:
            store: The lookup store the engine reads from.
            rng: Optional random generator, mainly for tests.

        Returns:
            A new InlineLogicEngine instance.
        """
        return InlineLogicEngine(
            store,
            rng=rng,
            max_passes=self._settings.ile_max_passes,
            timeout_seconds=self._settings.ile_timeout_seconds,
            max_string_length=self._settings.ile_max_string_length,
            trace=self._settings.ile_trace,
            max_nesting_depth=self._settings.ile_max_nesting_depth,
        )

    def get_responder(self, engine: InlineLogicEngine) -> AutoReplyResponder:
        return AutoReplyResponder(engine, max_messages=self._settings.max_reply_messages)

    def clear_cache(self) -> None:
        """Clear cached component instances."""
        self._memory_store_cache = None
        logger.debug("Component factory cache cleared")


# Global factory instance
_factory: ComponentFactory | None = None


def get_factory() -> ComponentFactory:
    """Get or create the global ComponentFactory instance.

    Returns:
        The singleton ComponentFactory instance.
    """
    global _factory
    if _factory is None:
        _factory = ComponentFactory()
    return _factory
