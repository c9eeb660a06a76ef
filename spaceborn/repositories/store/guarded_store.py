"""Timeout and error-translation wrapper around a document store

Every call is bounded by a timeout (surfaced as StoreTimeoutError) and any
non-service exception from the backend is surfaced as StoreError.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Sequence, TypeVar

from spaceborn.core.errors import ServiceError, StoreError, StoreTimeoutError
from spaceborn.core.telemetry import get_spaceborn_metrics
from spaceborn.repositories.store.interface import (
    Document,
    IDocumentStore,
    OrderBy,
    Predicate,
    WriteOp,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GuardedDocumentStore:
    """IDocumentStore decorator adding timeouts and StoreError translation"""

    def __init__(self, inner: IDocumentStore, timeout: float):
        self.inner = inner
        self.timeout = timeout

    async def _call(
        self, operation: str, awaitable: Awaitable[T], timeout: float | None
    ) -> T:
        limit = timeout if timeout is not None else self.timeout
        start = time.perf_counter()
        try:
            return await asyncio.wait_for(awaitable, timeout=limit)
        except asyncio.TimeoutError as e:
            logger.warning("[Store] %s timed out after %.1fs", operation, limit)
            raise StoreTimeoutError(
                "STORE_TIMEOUT", f"{operation} timed out after {limit}s"
            ) from e
        except ServiceError:
            raise
        except Exception as e:
            logger.error("[Store] %s failed: %s", operation, e)
            raise StoreError("STORE_ERROR", f"{operation} failed: {e}") from e
        finally:
            store_metrics = get_spaceborn_metrics()
            if store_metrics:
                store_metrics.store_call_duration.record(
                    time.perf_counter() - start, {"operation": operation}
                )

    async def insert(
        self,
        collection: str,
        data: dict[str, Any],
        doc_id: str | None = None,
        timeout: float | None = None,
    ) -> str:
        return await self._call(
            "insert", self.inner.insert(collection, data, doc_id), timeout
        )

    async def get(
        self, collection: str, doc_id: str, timeout: float | None = None
    ) -> Document:
        return await self._call("get", self.inner.get(collection, doc_id), timeout)

    async def query(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        order_by: OrderBy | None = None,
        timeout: float | None = None,
    ) -> list[Document]:
        return await self._call(
            "query", self.inner.query(collection, predicates, order_by), timeout
        )

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected_version: int | None = None,
        timeout: float | None = None,
    ) -> Document:
        return await self._call(
            "update",
            self.inner.update(collection, doc_id, fields, expected_version),
            timeout,
        )

    async def delete(
        self, collection: str, doc_id: str, timeout: float | None = None
    ) -> None:
        await self._call("delete", self.inner.delete(collection, doc_id), timeout)

    async def batch_write(
        self, ops: Sequence[WriteOp], timeout: float | None = None
    ) -> None:
        await self._call("batch_write", self.inner.batch_write(ops), timeout)
