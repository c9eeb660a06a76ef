"""Document store interface

Protocol-based interface so the memory and SQL stores (and the guarded
wrapper) are interchangeable without explicit inheritance.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Protocol, Sequence

from pydantic import BaseModel

from spaceborn.core.constants import CONTAINS_ANY_LIMIT
from spaceborn.core.errors import ValidationError

PredicateOp = Literal["eq", "contains", "contains_any"]


class Document(BaseModel):
    """Stored document"""

    id: str
    data: dict[str, Any]
    version: int = 1


@dataclass(frozen=True)
class Predicate:
    """Filter on one document field"""

    field: str
    op: PredicateOp
    value: Any

    def matches(self, data: dict[str, Any]) -> bool:
        actual = data.get(self.field)
        if self.op == "eq":
            return actual == self.value
        if not isinstance(actual, list):
            return False
        if self.op == "contains":
            return self.value in actual
        return any(v in actual for v in self.value)


def eq(field_name: str, value: Any) -> Predicate:
    return Predicate(field_name, "eq", value)


def contains(field_name: str, value: Any) -> Predicate:
    """Array field contains the value"""
    return Predicate(field_name, "contains", value)


def contains_any(field_name: str, values: Sequence[Any]) -> Predicate:
    """Array field intersects the values (at most CONTAINS_ANY_LIMIT of them)"""
    if len(values) > CONTAINS_ANY_LIMIT:
        raise ValidationError(
            "CONTAINS_ANY_LIMIT_EXCEEDED",
            f"contains_any accepts at most {CONTAINS_ANY_LIMIT} values, got {len(values)}",
        )
    return Predicate(field_name, "contains_any", list(values))


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class WriteOp:
    """One operation of an atomic batch

    kind:
        set: create or overwrite doc_id with data
        update: merge data into an existing document (fails if missing)
        delete: remove doc_id (missing documents are ignored)

    expected_version applies to update and delete: the whole batch fails
    with ConflictError when the document is at another version, and with
    NotFoundError when it is gone.
    """

    kind: Literal["set", "update", "delete"]
    collection: str
    doc_id: str
    data: dict[str, Any] = field(default_factory=dict)
    expected_version: int | None = None


def filter_and_sort(
    documents: Iterable[Document],
    predicates: Sequence[Predicate],
    order_by: OrderBy | None,
) -> list[Document]:
    """Apply predicates and ordering

    Sorting is stable, so documents with equal keys keep the store's
    insertion order. Documents missing the order field sort first.
    """
    result = [d for d in documents if all(p.matches(d.data) for p in predicates)]
    if order_by is not None:
        present = [d for d in result if d.data.get(order_by.field) is not None]
        missing = [d for d in result if d.data.get(order_by.field) is None]
        present.sort(key=lambda d: d.data[order_by.field], reverse=order_by.descending)
        result = missing + present
    return result


class IDocumentStore(Protocol):
    """Document store interface"""

    async def insert(
        self, collection: str, data: dict[str, Any], doc_id: str | None = None
    ) -> str:
        """Insert a document (auto-generated id unless doc_id is given)

        Raises:
            ConflictError: doc_id already exists
        """
        ...

    async def get(self, collection: str, doc_id: str) -> Document:
        """Fetch one document

        Raises:
            NotFoundError: document does not exist
        """
        ...

    async def query(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        order_by: OrderBy | None = None,
    ) -> list[Document]:
        """All documents matching every predicate"""
        ...

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected_version: int | None = None,
    ) -> Document:
        """Merge fields into a document and bump its version

        Raises:
            NotFoundError: document does not exist
            ConflictError: expected_version differs from the stored version
        """
        ...

    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document

        Raises:
            NotFoundError: document does not exist
        """
        ...

    async def batch_write(self, ops: Sequence[WriteOp]) -> None:
        """Apply all operations atomically: all succeed or none do"""
        ...
