"""In-memory document store

Used by tests and local development (use_memory_store=True).
"""

import asyncio
import copy
from typing import Any, Sequence
from uuid import uuid4

from spaceborn.core.errors import ConflictError, NotFoundError, ValidationError
from spaceborn.repositories.store.interface import (
    Document,
    OrderBy,
    Predicate,
    WriteOp,
    filter_and_sort,
)

# collection -> doc_id -> {"data": {...}, "version": int}
Collections = dict[str, dict[str, dict[str, Any]]]


class MemoryDocumentStore:
    """In-memory store with the same contract as the SQL store"""

    def __init__(self, data: Collections | None = None, latency: float = 0.0):
        self.data: Collections = data if data is not None else {}
        # artificial suspension per call, lets tests interleave concurrent flows
        self.latency = latency

    async def _suspend(self) -> None:
        await asyncio.sleep(self.latency)

    def _collection(self, collection: str) -> dict[str, dict[str, Any]]:
        return self.data.setdefault(collection, {})

    @staticmethod
    def _check_version(op: WriteOp, entry: dict[str, Any]) -> None:
        if op.expected_version is not None and entry["version"] != op.expected_version:
            raise ConflictError(
                "VERSION_CONFLICT",
                f"{op.collection}/{op.doc_id} is at version {entry['version']}, "
                f"expected {op.expected_version}",
            )

    @staticmethod
    def _to_document(doc_id: str, entry: dict[str, Any]) -> Document:
        return Document(id=doc_id, data=copy.deepcopy(entry["data"]), version=entry["version"])

    async def insert(
        self, collection: str, data: dict[str, Any], doc_id: str | None = None
    ) -> str:
        await self._suspend()
        docs = self._collection(collection)
        doc_id = doc_id or uuid4().hex
        if doc_id in docs:
            raise ConflictError("DOCUMENT_EXISTS", f"{collection}/{doc_id} already exists")
        docs[doc_id] = {"data": copy.deepcopy(data), "version": 1}
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Document:
        await self._suspend()
        entry = self._collection(collection).get(doc_id)
        if entry is None:
            raise NotFoundError("DOCUMENT_NOT_FOUND", f"{collection}/{doc_id} not found")
        return self._to_document(doc_id, entry)

    async def query(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        order_by: OrderBy | None = None,
    ) -> list[Document]:
        await self._suspend()
        documents = [
            self._to_document(doc_id, entry)
            for doc_id, entry in self._collection(collection).items()
        ]
        return filter_and_sort(documents, predicates, order_by)

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected_version: int | None = None,
    ) -> Document:
        await self._suspend()
        entry = self._collection(collection).get(doc_id)
        if entry is None:
            raise NotFoundError("DOCUMENT_NOT_FOUND", f"{collection}/{doc_id} not found")
        if expected_version is not None and entry["version"] != expected_version:
            raise ConflictError(
                "VERSION_CONFLICT",
                f"{collection}/{doc_id} is at version {entry['version']}, expected {expected_version}",
            )
        entry["data"].update(copy.deepcopy(fields))
        entry["version"] += 1
        return self._to_document(doc_id, entry)

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._suspend()
        docs = self._collection(collection)
        if doc_id not in docs:
            raise NotFoundError("DOCUMENT_NOT_FOUND", f"{collection}/{doc_id} not found")
        del docs[doc_id]

    async def batch_write(self, ops: Sequence[WriteOp]) -> None:
        await self._suspend()
        # apply to a copy, swap in only when every operation succeeded
        staged = copy.deepcopy(self.data)
        for op in ops:
            docs = staged.setdefault(op.collection, {})
            if op.kind == "set":
                previous = docs.get(op.doc_id)
                docs[op.doc_id] = {
                    "data": copy.deepcopy(op.data),
                    "version": previous["version"] + 1 if previous else 1,
                }
            elif op.kind == "update":
                entry = docs.get(op.doc_id)
                if entry is None:
                    raise NotFoundError(
                        "DOCUMENT_NOT_FOUND", f"{op.collection}/{op.doc_id} not found"
                    )
                self._check_version(op, entry)
                entry["data"].update(copy.deepcopy(op.data))
                entry["version"] += 1
            elif op.kind == "delete":
                if op.expected_version is not None:
                    entry = docs.get(op.doc_id)
                    if entry is None:
                        raise NotFoundError(
                            "DOCUMENT_NOT_FOUND", f"{op.collection}/{op.doc_id} not found"
                        )
                    self._check_version(op, entry)
                docs.pop(op.doc_id, None)
            else:
                raise ValidationError("INVALID_BATCH_OP", f"Unknown batch op: {op.kind}")
        self.data.clear()
        self.data.update(staged)
