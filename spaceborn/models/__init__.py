from spaceborn.models.actor import Actor, UserRole
from spaceborn.models.ansh import Subtopic, SubtopicStatus, Topic, TopicStatus
from spaceborn.models.assignment import (
    AllMyGroupsTarget,
    Assignment,
    GroupTarget,
    GroupTaskTarget,
    IndividualsTarget,
    IndividualTaskTarget,
    ResourceTarget,
    TaskTarget,
)
from spaceborn.models.document import StoredDocument
from spaceborn.models.group import Group, GroupMember
from spaceborn.models.resource import Resource
from spaceborn.models.task import Subtask, Task, TaskDifficulty, TaskPriority, TaskStatus

__all__ = [
    "Actor",
    "UserRole",
    "Topic",
    "TopicStatus",
    "Subtopic",
    "SubtopicStatus",
    "IndividualsTarget",
    "GroupTarget",
    "AllMyGroupsTarget",
    "ResourceTarget",
    "IndividualTaskTarget",
    "GroupTaskTarget",
    "TaskTarget",
    "Assignment",
    "StoredDocument",
    "Group",
    "GroupMember",
    "Resource",
    "Subtask",
    "Task",
    "TaskDifficulty",
    "TaskPriority",
    "TaskStatus",
]
