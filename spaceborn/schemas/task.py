from pydantic import BaseModel, ConfigDict, Field

from spaceborn.models.assignment import TaskTarget
from spaceborn.models.task import Subtask, Task, TaskDifficulty, TaskPriority


class CreateTaskRequest(BaseModel):
    """Task creation request"""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    deadline: str | None = None
    difficulty: TaskDifficulty | None = None
    estimated_hours: float | None = Field(default=None, ge=0, alias="estimatedHours")
    tags: list[str] = Field(default_factory=list)
    subtasks: list[Subtask] = Field(default_factory=list)
    blockers: list[str] = Field(default_factory=list)
    group_id: str | None = Field(default=None, alias="groupId")
    target: TaskTarget


class UpdateTaskStatusRequest(BaseModel):
    # plain str so unknown statuses reach the lifecycle check
    status: str


class UpdateTaskRequest(BaseModel):
    """Task edit request (status changes go through /status and /verify)"""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    priority: TaskPriority | None = None
    deadline: str | None = None
    difficulty: TaskDifficulty | None = None
    estimated_hours: float | None = Field(default=None, ge=0, alias="estimatedHours")
    tags: list[str] | None = None
    subtasks: list[Subtask] | None = None
    blockers: list[str] | None = None


class TaskListResponse(BaseModel):
    items: list[Task]
