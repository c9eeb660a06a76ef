from enum import Enum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from spaceborn.models.base import StoredEntity, Timestamp, utcnow


class TaskStatus(str, Enum):
    """Task workflow states"""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


TaskType = Literal["individual", "group"]


class Subtask(BaseModel):
    """Checklist item of a task"""

    id: str = Field(default_factory=lambda: uuid4().hex)
    title: str = Field(min_length=1)
    completed: bool = False


class Task(StoredEntity):
    """Unit of work assigned to a user or a whole group"""

    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    deadline: str | None = None
    type: TaskType

    difficulty: TaskDifficulty | None = None
    estimated_hours: float | None = Field(default=None, ge=0)
    tags: list[str] = Field(default_factory=list)
    subtasks: list[Subtask] = Field(default_factory=list)
    blockers: list[str] = Field(default_factory=list)

    # individual tasks
    assigned_to: str | None = None
    assigned_to_name: str | None = None
    # group tasks
    assigned_to_group: str | None = None

    group_id: str
    group_name: str | None = None
    assigned_by: str

    verified_by: str | None = None
    verified_by_name: str | None = None

    created_at: Timestamp = Field(default_factory=utcnow)
    updated_at: Timestamp = Field(default_factory=utcnow)
    completed_at: Timestamp | None = None

    def is_assignee(self, user_id: str, group_ids: list[str]) -> bool:
        """Whether the user is (one of) the task's assignees"""
        if self.type == "individual":
            return self.assigned_to == user_id
        return self.assigned_to_group in group_ids
