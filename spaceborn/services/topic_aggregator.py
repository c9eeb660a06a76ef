"""Topic aggregator

Owns the Topic rollup: status, progress, totalSubtopics and
completedSubtopics are derived from the topic's subtopics and are written
only by recompute().

Recompute is serialized per topic inside the process (asyncio.Lock registry)
and the write is a compare-and-set on the topic's version, so concurrent
subtopic mutations from other processes never leave a stale rollup behind.
"""

import asyncio
import logging
import weakref
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from spaceborn.core.config import get_settings
from spaceborn.core.constants import SUBTOPICS, TOPICS
from spaceborn.core.errors import ConflictError, NotFoundError, ValidationError
from spaceborn.core.telemetry import get_spaceborn_metrics, traced_function
from spaceborn.models.ansh import SubtopicStatus, Topic, TopicStatus
from spaceborn.models.base import timestamp_now
from spaceborn.repositories.store import IDocumentStore, OrderBy, WriteOp, eq

logger = logging.getLogger(__name__)


def compute_progress(completed: int, total: int) -> int:
    """Completion percentage, rounded half up (0 when there is nothing to do)"""
    if total == 0:
        return 0
    ratio = Decimal(100 * completed) / Decimal(total)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def derive_status(progress: int, total: int) -> TopicStatus:
    if total == 0 or progress == 0:
        return TopicStatus.PENDING
    if progress == 100:
        return TopicStatus.COMPLETED
    return TopicStatus.IN_PROGRESS


def compute_rollup(statuses: Iterable[str]) -> dict:
    """Rollup document fields for the given subtopic statuses"""
    statuses = list(statuses)
    total = len(statuses)
    completed = sum(1 for s in statuses if s == SubtopicStatus.COMPLETED.value)
    progress = compute_progress(completed, total)
    return {
        "totalSubtopics": total,
        "completedSubtopics": completed,
        "progress": progress,
        "status": derive_status(progress, total).value,
    }


class TopicAggregator:
    """Topic CRUD and rollup maintenance"""

    def __init__(self, store: IDocumentStore, max_retries: int | None = None):
        self.store = store
        if max_retries is None:
            max_retries = get_settings().recompute_max_retries
        self.max_retries = max_retries
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def topic_lock(self, topic_id: str) -> asyncio.Lock:
        """In-process lock serializing rollup writes and structural changes of a topic"""
        lock = self._locks.get(topic_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[topic_id] = lock
        return lock

    async def create(
        self,
        title: str,
        description: str | None = None,
        assigned_group_ids: list[str] | None = None,
        assigned_group_names: list[str] | None = None,
    ) -> Topic:
        """Create a topic with an empty rollup"""
        if not title or not title.strip():
            raise ValidationError("TITLE_REQUIRED", "Topic title is required")

        topic = Topic(
            title=title.strip(),
            description=description,
            assigned_group_ids=assigned_group_ids or [],
            assigned_group_names=assigned_group_names or [],
        )
        topic_id = await self.store.insert(TOPICS, topic.to_document())
        logger.info("Topic created: topic=%s, title=%s", topic_id, topic.title)
        return topic.model_copy(update={"id": topic_id, "version": 1})

    async def get(self, topic_id: str) -> Topic:
        """Fetch a topic

        Raises:
            NotFoundError: TOPIC_NOT_FOUND
        """
        try:
            document = await self.store.get(TOPICS, topic_id)
        except NotFoundError:
            raise NotFoundError("TOPIC_NOT_FOUND", f"Topic not found: {topic_id}")
        return Topic.from_document(document)

    async def list_topics(self) -> list[Topic]:
        """All topics, newest first"""
        documents = await self.store.query(TOPICS, order_by=OrderBy("createdAt", descending=True))
        return [Topic.from_document(d) for d in documents]

    async def update_details(
        self,
        topic_id: str,
        title: str | None = None,
        description: str | None = None,
        assigned_group_ids: list[str] | None = None,
        assigned_group_names: list[str] | None = None,
    ) -> Topic:
        """Edit descriptive fields (the rollup is not editable here)"""
        fields: dict = {}
        if title is not None:
            if not title.strip():
                raise ValidationError("TITLE_REQUIRED", "Topic title is required")
            fields["title"] = title.strip()
        if description is not None:
            fields["description"] = description
        if assigned_group_ids is not None:
            fields["assignedGroupIds"] = assigned_group_ids
        if assigned_group_names is not None:
            fields["assignedGroupNames"] = assigned_group_names
        fields["updatedAt"] = timestamp_now()

        try:
            document = await self.store.update(TOPICS, topic_id, fields)
        except NotFoundError:
            raise NotFoundError("TOPIC_NOT_FOUND", f"Topic not found: {topic_id}")
        return Topic.from_document(document)

    @traced_function("topic.recompute")
    async def recompute(self, topic_id: str) -> Topic | None:
        """Re-derive the rollup of a topic from its current subtopics

        A topic deleted concurrently is not an error: the call is a no-op and
        returns None.

        Raises:
            ConflictError: RECOMPUTE_CONFLICT when the first attempt and
                max_retries retries all lost the version check
        """
        store_metrics = get_spaceborn_metrics()

        async with self.topic_lock(topic_id):
            for attempt in range(1, self.max_retries + 2):
                try:
                    topic_document = await self.store.get(TOPICS, topic_id)
                except NotFoundError:
                    logger.info("Recompute skipped, topic gone: topic=%s", topic_id)
                    return None

                # topic version is read before the subtopics, so a successful
                # write always reflects subtopics at least as new as that version
                subtopics = await self.store.query(SUBTOPICS, [eq("topicId", topic_id)])
                fields = compute_rollup(d.data.get("status") for d in subtopics)
                fields["updatedAt"] = timestamp_now()

                try:
                    document = await self.store.update(
                        TOPICS,
                        topic_id,
                        fields,
                        expected_version=topic_document.version,
                    )
                except NotFoundError:
                    logger.info("Recompute skipped, topic gone: topic=%s", topic_id)
                    return None
                except ConflictError:
                    logger.warning(
                        "Recompute lost version check: topic=%s, attempt=%d",
                        topic_id,
                        attempt,
                    )
                    if store_metrics:
                        store_metrics.recompute_conflicts_total.add(1)
                    continue

                if store_metrics:
                    store_metrics.recompute_total.add(1)
                logger.debug(
                    "Topic recomputed: topic=%s, progress=%s, status=%s",
                    topic_id,
                    fields["progress"],
                    fields["status"],
                )
                return Topic.from_document(document)

        raise ConflictError(
            "RECOMPUTE_CONFLICT",
            f"Topic {topic_id} changed concurrently, {self.max_retries} retries exhausted",
        )

    @traced_function("topic.delete")
    async def delete(self, topic_id: str) -> None:
        """Delete the topic and all of its subtopics in one atomic batch

        The topic row is deleted at the version read before its subtopics were
        listed. A subtopic created elsewhere in between bumps that version
        through recompute, and the cascade is listed again.

        Raises:
            NotFoundError: TOPIC_NOT_FOUND
            ConflictError: TOPIC_DELETE_CONFLICT when every attempt lost the
                version check
        """
        async with self.topic_lock(topic_id):
            for attempt in range(1, self.max_retries + 2):
                topic = await self.get(topic_id)
                subtopics = await self.store.query(SUBTOPICS, [eq("topicId", topic_id)])

                ops = [WriteOp("delete", TOPICS, topic_id, expected_version=topic.version)]
                ops.extend(WriteOp("delete", SUBTOPICS, d.id) for d in subtopics)
                try:
                    await self.store.batch_write(ops)
                except NotFoundError:
                    raise NotFoundError("TOPIC_NOT_FOUND", f"Topic not found: {topic_id}")
                except ConflictError:
                    logger.warning(
                        "Topic delete lost version check: topic=%s, attempt=%d",
                        topic_id,
                        attempt,
                    )
                    continue

                logger.info(
                    "Topic deleted: topic=%s, subtopics=%d", topic_id, len(subtopics)
                )
                return

        raise ConflictError(
            "TOPIC_DELETE_CONFLICT",
            f"Topic {topic_id} changed concurrently, {self.max_retries} retries exhausted",
        )
