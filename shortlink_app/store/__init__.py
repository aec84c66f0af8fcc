"""
URL store module.

This module implements the Strategy Pattern for pluggable URL storage:
the in-memory and relational stores share one contract.
"""

from .strategies import URLStoreStrategy, InMemoryURLStore, SQLURLStore, ANONYMOUS_OWNER
from .factory import URLStoreFactory, StoreBackend

__all__ = [
    "URLStoreStrategy",
    "InMemoryURLStore",
    "SQLURLStore",
    "ANONYMOUS_OWNER",
    "URLStoreFactory",
    "StoreBackend",
]
