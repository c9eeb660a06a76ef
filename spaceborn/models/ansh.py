"""Topic / Subtopic progress tracker entities"""

from enum import Enum

from pydantic import Field

from spaceborn.models.base import StoredEntity, Timestamp, utcnow


class TopicStatus(str, Enum):
    """Topic rollup status"""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SubtopicStatus(str, Enum):
    """Subtopic status"""

    PENDING = "pending"
    COMPLETED = "completed"

    def toggled(self) -> "SubtopicStatus":
        if self is SubtopicStatus.PENDING:
            return SubtopicStatus.COMPLETED
        return SubtopicStatus.PENDING


class Topic(StoredEntity):
    """Topic with a derived completion percentage"""

    title: str
    description: str | None = None
    assigned_group_ids: list[str] = Field(default_factory=list)
    assigned_group_names: list[str] = Field(default_factory=list)
    status: TopicStatus = TopicStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    total_subtopics: int = Field(default=0, ge=0)
    completed_subtopics: int = Field(default=0, ge=0)
    created_at: Timestamp = Field(default_factory=utcnow)
    updated_at: Timestamp = Field(default_factory=utcnow)


class Subtopic(StoredEntity):
    """Leaf work item under a topic"""

    topic_id: str
    title: str
    status: SubtopicStatus = SubtopicStatus.PENDING
    assigned_user_id: str | None = None
    created_at: Timestamp = Field(default_factory=utcnow)
