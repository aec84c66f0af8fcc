"""
Factory for creating URL store instances.
Falls back to the in-memory store when the database is unreachable.
"""

from enum import Enum
from typing import Optional

from .strategies import URLStoreStrategy, InMemoryURLStore, SQLURLStore
from shortlink_app.config import Settings
from shortlink_app.exceptions import BackendUnavailable
from shortlink_app.logging_config import get_logger

logger = get_logger(__name__)


class StoreBackend(Enum):
    """Available URL store backends"""
    MEMORY = "memory"
    SQL = "sql"


class URLStoreFactory:
    """
    Simple factory for creating URL stores.

    Unlike a cached singleton, every call builds a new store: each app
    instance owns its store and closes it on shutdown.
    """

    @staticmethod
    def backend_for(settings: Settings) -> StoreBackend:
        """A configured database_url always selects the sql backend"""
        if settings.database_url:
            return StoreBackend.SQL
        return StoreBackend(settings.store_backend)

    @classmethod
    def create(
        cls,
        settings: Settings,
        backend: Optional[StoreBackend] = None
    ) -> URLStoreStrategy:
        """
        Create a URL store.

        Args:
            settings: Application settings (database_url etc.)
            backend: Explicit backend; derived from settings when omitted

        Returns:
            URLStoreStrategy instance
        """
        if backend is None:
            backend = cls.backend_for(settings)

        if backend == StoreBackend.SQL:
            if not settings.database_url:
                raise ValueError("database_url is required for the sql store backend")

            try:
                store = SQLURLStore(settings.database_url)
                logger.info("Using SQL URL store")
                return store
            except BackendUnavailable as e:
                logger.warning("Failed to create SQL store: %s", e)
                logger.warning("Falling back to in-memory store")
                return InMemoryURLStore()

        elif backend == StoreBackend.MEMORY:
            logger.info("Using in-memory URL store")
            return InMemoryURLStore()

        raise ValueError(f"Unknown store backend: {backend}")
