"""Task lifecycle

pending -> in_progress -> review -> completed

Assignees may move pending -> in_progress, pending -> review and
in_progress -> review. Only a verifier moves review -> completed, and
whether an actor may verify is decided by a TaskVerificationPolicy.
"""

from typing import Protocol

from spaceborn.core.errors import PermissionDeniedError, ValidationError
from spaceborn.models.actor import Actor, UserRole
from spaceborn.models.task import Task, TaskStatus
from spaceborn.services.group_service import GroupService

ASSIGNEE_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.REVIEW}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.REVIEW}),
    TaskStatus.REVIEW: frozenset(),
    TaskStatus.COMPLETED: frozenset(),
}

PRIVILEGED_ROLES = frozenset({UserRole.ADMIN, UserRole.CORE_EMPLOYEE})


def parse_status(value: str) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        raise ValidationError("INVALID_TASK_STATUS", f"Unknown task status: {value}")


def check_assignee_transition(current: TaskStatus, target: TaskStatus) -> TaskStatus:
    """Validate a status change requested by an assignee

    Raises:
        ValidationError: COMPLETION_REQUIRES_VERIFICATION, INVALID_TRANSITION
    """
    if target is TaskStatus.COMPLETED:
        raise ValidationError(
            "COMPLETION_REQUIRES_VERIFICATION",
            "Tasks are completed by a verifier, not by the assignee",
        )
    if target not in ASSIGNEE_TRANSITIONS[current]:
        raise ValidationError(
            "INVALID_TRANSITION",
            f"Cannot move a task from {current.value} to {target.value}",
        )
    return target


def check_verifiable(current: TaskStatus) -> None:
    if current is not TaskStatus.REVIEW:
        raise ValidationError(
            "TASK_NOT_IN_REVIEW",
            f"Only tasks in review can be verified (status: {current.value})",
        )


def require_privileged(actor: Actor) -> None:
    """Raises PermissionDeniedError unless the actor is an admin or core employee"""
    if actor.role not in PRIVILEGED_ROLES:
        raise PermissionDeniedError(
            "PERMISSION_DENIED",
            f"{actor.id} ({actor.role.value}) is not an admin or core employee",
        )


class TaskVerificationPolicy(Protocol):
    """Decides whether an actor may verify (complete) a task"""

    async def can_verify(self, actor: Actor, task: Task) -> bool:
        ...


class LeadOrPrivilegedVerificationPolicy:
    """Admins, core employees and the lead of the task's group may verify"""

    PRIVILEGED_ROLES = PRIVILEGED_ROLES

    def __init__(self, group_service: GroupService):
        self.group_service = group_service

    async def can_verify(self, actor: Actor, task: Task) -> bool:
        if actor.role in self.PRIVILEGED_ROLES:
            return True
        return await self.group_service.is_group_lead(actor.id, task.group_id)
