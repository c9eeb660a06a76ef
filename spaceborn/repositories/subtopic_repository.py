"""Subtopic repository

Every mutation is two explicit steps: write the subtopic, then recompute the
parent topic through the aggregator before returning.
"""

import logging

from spaceborn.core.constants import SUBTOPICS
from spaceborn.core.errors import NotFoundError, ValidationError
from spaceborn.models.ansh import Subtopic, SubtopicStatus
from spaceborn.repositories.store import IDocumentStore, OrderBy, eq
from spaceborn.services.topic_aggregator import TopicAggregator

logger = logging.getLogger(__name__)


class SubtopicRepository:
    """CRUD over subtopics scoped to a topic"""

    def __init__(self, store: IDocumentStore, aggregator: TopicAggregator):
        self.store = store
        self.aggregator = aggregator

    async def create(
        self, topic_id: str, title: str, assigned_user_id: str | None = None
    ) -> Subtopic:
        """Add a pending subtopic, then recompute the topic

        Raises:
            ValidationError: TITLE_REQUIRED
            NotFoundError: TOPIC_NOT_FOUND, also when the topic is deleted
                before the new subtopic is counted
        """
        if not title or not title.strip():
            raise ValidationError("TITLE_REQUIRED", "Subtopic title is required")

        subtopic = Subtopic(
            topic_id=topic_id,
            title=title.strip(),
            assigned_user_id=assigned_user_id,
        )
        # a topic delete in this process waits until the insert is visible
        async with self.aggregator.topic_lock(topic_id):
            await self.aggregator.get(topic_id)
            subtopic_id = await self.store.insert(SUBTOPICS, subtopic.to_document())

        if await self.aggregator.recompute(topic_id) is None:
            # topic deleted elsewhere after the existence check
            try:
                await self.store.delete(SUBTOPICS, subtopic_id)
            except NotFoundError:
                pass
            logger.info(
                "Subtopic discarded, topic gone: subtopic=%s, topic=%s", subtopic_id, topic_id
            )
            raise NotFoundError("TOPIC_NOT_FOUND", f"Topic not found: {topic_id}")

        return subtopic.model_copy(update={"id": subtopic_id, "version": 1})

    async def list(self, topic_id: str) -> list[Subtopic]:
        """Subtopics of a topic in creation order (empty for unknown topics)"""
        documents = await self.store.query(
            SUBTOPICS,
            [eq("topicId", topic_id)],
            order_by=OrderBy("createdAt"),
        )
        return [Subtopic.from_document(d) for d in documents]

    async def toggle_status(
        self, subtopic_id: str, current_status: str, topic_id: str
    ) -> Subtopic:
        """Flip pending/completed starting from the caller's view of the status

        The stored status is not compared with current_status; the caller's
        value decides the new status.
        """
        try:
            status = SubtopicStatus(current_status)
        except ValueError:
            raise ValidationError(
                "INVALID_SUBTOPIC_STATUS", f"Unknown subtopic status: {current_status}"
            )

        await self._get_in_topic(subtopic_id, topic_id)
        document = await self.store.update(
            SUBTOPICS, subtopic_id, {"status": status.toggled().value}
        )

        await self.aggregator.recompute(topic_id)
        return Subtopic.from_document(document)

    async def delete(self, subtopic_id: str, topic_id: str) -> None:
        """Remove a subtopic, then recompute the topic"""
        await self._get_in_topic(subtopic_id, topic_id)
        await self.store.delete(SUBTOPICS, subtopic_id)

        await self.aggregator.recompute(topic_id)
        logger.info("Subtopic deleted: subtopic=%s, topic=%s", subtopic_id, topic_id)

    async def _get_in_topic(self, subtopic_id: str, topic_id: str) -> Subtopic:
        try:
            document = await self.store.get(SUBTOPICS, subtopic_id)
        except NotFoundError:
            raise NotFoundError("SUBTOPIC_NOT_FOUND", f"Subtopic not found: {subtopic_id}")

        subtopic = Subtopic.from_document(document)
        if subtopic.topic_id != topic_id:
            raise ValidationError(
                "SUBTOPIC_TOPIC_MISMATCH",
                f"Subtopic {subtopic_id} does not belong to topic {topic_id}",
            )
        return subtopic
