"""Document-backed entity base

Entities are stored as camelCase documents. Timestamps are serialized as
fixed-width UTC ISO strings so that ordering by a timestamp field is a plain
string comparison in every store backend.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Self

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def serialize_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


Timestamp = Annotated[datetime, PlainSerializer(serialize_timestamp, return_type=str)]


class StoredEntity(BaseModel):
    """Entity persisted as one document in a collection"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str | None = None
    version: int | None = None

    @classmethod
    def from_document(cls, document: Any) -> Self:
        """Build the entity from a store Document"""
        return cls.model_validate(
            {**document.data, "id": document.id, "version": document.version}
        )

    def to_document(self) -> dict[str, Any]:
        """Document body (without id/version, which the store manages)"""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"id", "version"},
        )


def timestamp_now() -> str:
    """Current time in the stored timestamp format"""
    return serialize_timestamp(utcnow())
