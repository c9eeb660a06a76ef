"""SQLAlchemy-backed document store

Documents live in one `documents` table keyed by (collection, doc_id). Each
call runs in its own transaction; a batch write is a single transaction.
Predicates are evaluated on the loaded JSON bodies so the same semantics hold
on PostgreSQL and SQLite.
"""

import logging
from typing import Any, Sequence
from uuid import uuid4

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from spaceborn.core.database import Base, create_session_maker
from spaceborn.core.errors import ConflictError, NotFoundError, ValidationError
from spaceborn.models.document import StoredDocument
from spaceborn.repositories.store.interface import (
    Document,
    OrderBy,
    Predicate,
    WriteOp,
    filter_and_sort,
)

logger = logging.getLogger(__name__)

# optimistic retries for un-versioned merges racing another writer
_MERGE_RETRIES = 3


class SQLDocumentStore:
    """Document store on a relational database"""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_maker = create_session_maker(engine)

    async def create_tables(self) -> None:
        """Create the documents table if missing"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()

    # =========================================================================
    # helpers
    # =========================================================================

    @staticmethod
    async def _load(
        session: AsyncSession, collection: str, doc_id: str
    ) -> StoredDocument | None:
        query = select(StoredDocument).where(
            StoredDocument.collection == collection,
            StoredDocument.doc_id == doc_id,
        ).execution_options(populate_existing=True)
        result = await session.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    def _to_document(row: StoredDocument) -> Document:
        return Document(id=row.doc_id, data=dict(row.data), version=row.version)

    async def _merge(
        self,
        session: AsyncSession,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected_version: int | None,
    ) -> Document:
        """Compare-and-set merge of fields into one document"""
        for _ in range(_MERGE_RETRIES):
            row = await self._load(session, collection, doc_id)
            if row is None:
                raise NotFoundError("DOCUMENT_NOT_FOUND", f"{collection}/{doc_id} not found")
            if expected_version is not None and row.version != expected_version:
                raise ConflictError(
                    "VERSION_CONFLICT",
                    f"{collection}/{doc_id} is at version {row.version}, expected {expected_version}",
                )

            merged = {**row.data, **fields}
            stmt = (
                update(StoredDocument)
                .where(
                    StoredDocument.collection == collection,
                    StoredDocument.doc_id == doc_id,
                    StoredDocument.version == row.version,
                )
                .values(data=merged, version=row.version + 1)
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)
            if result.rowcount == 1:
                return Document(id=doc_id, data=merged, version=row.version + 1)

            # another writer bumped the version between read and write
            if expected_version is not None:
                raise ConflictError(
                    "VERSION_CONFLICT", f"{collection}/{doc_id} changed concurrently"
                )

        raise ConflictError("VERSION_CONFLICT", f"{collection}/{doc_id} changed concurrently")

    # =========================================================================
    # IDocumentStore
    # =========================================================================

    async def insert(
        self, collection: str, data: dict[str, Any], doc_id: str | None = None
    ) -> str:
        doc_id = doc_id or uuid4().hex
        try:
            async with self.session_maker.begin() as session:
                if await self._load(session, collection, doc_id) is not None:
                    raise ConflictError("DOCUMENT_EXISTS", f"{collection}/{doc_id} already exists")
                session.add(StoredDocument(collection=collection, doc_id=doc_id, data=data, version=1))
        except IntegrityError as e:
            raise ConflictError("DOCUMENT_EXISTS", f"{collection}/{doc_id} already exists") from e
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Document:
        async with self.session_maker() as session:
            row = await self._load(session, collection, doc_id)
            if row is None:
                raise NotFoundError("DOCUMENT_NOT_FOUND", f"{collection}/{doc_id} not found")
            return self._to_document(row)

    async def query(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        order_by: OrderBy | None = None,
    ) -> list[Document]:
        async with self.session_maker() as session:
            query = (
                select(StoredDocument)
                .where(StoredDocument.collection == collection)
                .order_by(StoredDocument.seq)
            )
            result = await session.execute(query)
            documents = [self._to_document(row) for row in result.scalars().all()]
        return filter_and_sort(documents, predicates, order_by)

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected_version: int | None = None,
    ) -> Document:
        async with self.session_maker.begin() as session:
            return await self._merge(session, collection, doc_id, fields, expected_version)

    async def delete(self, collection: str, doc_id: str) -> None:
        async with self.session_maker.begin() as session:
            stmt = delete(StoredDocument).where(
                StoredDocument.collection == collection,
                StoredDocument.doc_id == doc_id,
            )
            result = await session.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("DOCUMENT_NOT_FOUND", f"{collection}/{doc_id} not found")

    async def batch_write(self, ops: Sequence[WriteOp]) -> None:
        # leaving the begin() block with an exception rolls the whole batch back
        async with self.session_maker.begin() as session:
            for op in ops:
                if op.kind == "set":
                    row = await self._load(session, op.collection, op.doc_id)
                    if row is None:
                        session.add(
                            StoredDocument(
                                collection=op.collection,
                                doc_id=op.doc_id,
                                data=op.data,
                                version=1,
                            )
                        )
                        await session.flush()
                    else:
                        row.data = dict(op.data)
                        row.version = row.version + 1
                elif op.kind == "update":
                    await self._merge(
                        session, op.collection, op.doc_id, op.data, op.expected_version
                    )
                elif op.kind == "delete":
                    stmt = delete(StoredDocument).where(
                        StoredDocument.collection == op.collection,
                        StoredDocument.doc_id == op.doc_id,
                    )
                    if op.expected_version is None:
                        await session.execute(stmt)
                        continue

                    stmt = stmt.where(StoredDocument.version == op.expected_version)
                    result = await session.execute(stmt)
                    if result.rowcount == 0:
                        if await self._load(session, op.collection, op.doc_id) is None:
                            raise NotFoundError(
                                "DOCUMENT_NOT_FOUND", f"{op.collection}/{op.doc_id} not found"
                            )
                        raise ConflictError(
                            "VERSION_CONFLICT",
                            f"{op.collection}/{op.doc_id} changed, expected {op.expected_version}",
                        )
                else:
                    raise ValidationError("INVALID_BATCH_OP", f"Unknown batch op: {op.kind}")
        logger.debug("Batch committed: %d ops", len(ops))
