"""Document store package

Store-agnostic document persistence used by every repository and service.
"""

from spaceborn.repositories.store.guarded_store import GuardedDocumentStore
from spaceborn.repositories.store.interface import (
    Document,
    IDocumentStore,
    OrderBy,
    Predicate,
    WriteOp,
    contains,
    contains_any,
    eq,
)
from spaceborn.repositories.store.memory_store import MemoryDocumentStore
from spaceborn.repositories.store.sql_store import SQLDocumentStore


def create_document_store() -> GuardedDocumentStore:
    """Document store factory

    Returns the memory or SQL store per settings, wrapped with timeouts.

    Returns:
        GuardedDocumentStore
    """
    from spaceborn.core.config import get_settings
    from spaceborn.core.database import create_engine

    settings = get_settings()
    if settings.use_memory_store:
        inner: IDocumentStore = MemoryDocumentStore()
    else:
        inner = SQLDocumentStore(create_engine())

    return GuardedDocumentStore(inner, timeout=settings.store_timeout_seconds)


__all__ = [
    "Document",
    "IDocumentStore",
    "OrderBy",
    "Predicate",
    "WriteOp",
    "eq",
    "contains",
    "contains_any",
    "GuardedDocumentStore",
    "MemoryDocumentStore",
    "SQLDocumentStore",
    "create_document_store",
]
