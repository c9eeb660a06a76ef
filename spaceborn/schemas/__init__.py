from spaceborn.schemas.common import ErrorResponse
from spaceborn.schemas.resource import CreateResourceRequest, ResourceListResponse
from spaceborn.schemas.task import (
    CreateTaskRequest,
    TaskListResponse,
    UpdateTaskRequest,
    UpdateTaskStatusRequest,
)
from spaceborn.schemas.topic import (
    CreateSubtopicRequest,
    CreateTopicRequest,
    SubtopicListResponse,
    ToggleSubtopicRequest,
    TopicListResponse,
    UpdateTopicRequest,
)

__all__ = [
    "CreateResourceRequest",
    "CreateSubtopicRequest",
    "CreateTaskRequest",
    "CreateTopicRequest",
    "ErrorResponse",
    "ResourceListResponse",
    "SubtopicListResponse",
    "TaskListResponse",
    "ToggleSubtopicRequest",
    "TopicListResponse",
    "UpdateTaskRequest",
    "UpdateTaskStatusRequest",
    "UpdateTopicRequest",
]
