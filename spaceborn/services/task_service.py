"""Task service

Task creation, assignee status changes, verification and listings.
"""

import logging

from spaceborn.core.constants import TASKS
from spaceborn.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from spaceborn.core.telemetry import traced_function
from spaceborn.models.actor import Actor
from spaceborn.models.assignment import GroupTaskTarget, IndividualTaskTarget
from spaceborn.models.base import timestamp_now
from spaceborn.models.task import Subtask, Task, TaskDifficulty, TaskPriority, TaskStatus
from spaceborn.repositories.store import IDocumentStore, OrderBy, eq
from spaceborn.services.assignment_resolver import AssignmentResolver
from spaceborn.services.group_service import GroupService
from spaceborn.services.task_lifecycle import (
    TaskVerificationPolicy,
    check_assignee_transition,
    check_verifiable,
    parse_status,
)

logger = logging.getLogger(__name__)

NEWEST_FIRST = OrderBy("createdAt", descending=True)


def _check_estimated_hours(estimated_hours: float | None) -> None:
    if estimated_hours is not None and estimated_hours < 0:
        raise ValidationError(
            "INVALID_ESTIMATED_HOURS", f"Estimated hours must not be negative: {estimated_hours}"
        )


class TaskService:
    """Task service"""

    def __init__(
        self,
        store: IDocumentStore,
        group_service: GroupService,
        resolver: AssignmentResolver,
        verification_policy: TaskVerificationPolicy,
    ):
        self.store = store
        self.group_service = group_service
        self.resolver = resolver
        self.verification_policy = verification_policy

    @traced_function("task.create")
    async def create_task(
        self,
        title: str,
        target: IndividualTaskTarget | GroupTaskTarget,
        actor: Actor,
        group_id: str | None = None,
        description: str = "",
        priority: TaskPriority = TaskPriority.MEDIUM,
        deadline: str | None = None,
        difficulty: TaskDifficulty | None = None,
        estimated_hours: float | None = None,
        tags: list[str] | None = None,
        subtasks: list[Subtask] | None = None,
        blockers: list[str] | None = None,
    ) -> Task:
        """Create a pending task for one user or a whole group

        For group tasks the target group is also the task's group context.
        Tags, subtasks and blockers start empty unless given.
        """
        if not title or not title.strip():
            raise ValidationError("TITLE_REQUIRED", "Task title is required")
        _check_estimated_hours(estimated_hours)
        details = {
            "difficulty": difficulty,
            "estimated_hours": estimated_hours,
            "tags": list(tags or []),
            "subtasks": list(subtasks or []),
            "blockers": list(blockers or []),
        }

        assignment = self.resolver.resolve_task(target)

        if isinstance(target, GroupTaskTarget):
            group = await self.group_service.get_group(target.group_id)
            task = Task(
                title=title.strip(),
                description=description,
                priority=priority,
                deadline=deadline,
                type="group",
                **details,
                assigned_to_group=assignment.assigned_to_groups[0],
                group_id=group.id,
                group_name=group.name,
                assigned_by=actor.id,
            )
        else:
            if not group_id:
                raise ValidationError("GROUP_REQUIRED", "A group is required")
            group = await self.group_service.get_group(group_id)
            task = Task(
                title=title.strip(),
                description=description,
                priority=priority,
                deadline=deadline,
                type="individual",
                **details,
                assigned_to=assignment.assigned_to[0],
                assigned_to_name=target.user_name,
                group_id=group.id,
                group_name=group.name,
                assigned_by=actor.id,
            )

        task_id = await self.store.insert(TASKS, task.to_document())
        logger.info("Task created: task=%s, type=%s, by=%s", task_id, task.type, actor.id)
        return task.model_copy(update={"id": task_id, "version": 1})

    async def get_task(self, task_id: str) -> Task:
        try:
            document = await self.store.get(TASKS, task_id)
        except NotFoundError:
            raise NotFoundError("TASK_NOT_FOUND", f"Task not found: {task_id}")
        return Task.from_document(document)

    async def ensure_assignee(self, task_id: str, actor: Actor) -> Task:
        """Raises PermissionDeniedError unless the actor is an assignee"""
        task = await self.get_task(task_id)
        group_ids = []
        if task.type == "group":
            group_ids = [g.id for g in await self.group_service.get_user_groups(actor.id)]
        if not task.is_assignee(actor.id, group_ids):
            raise PermissionDeniedError(
                "NOT_TASK_ASSIGNEE", f"{actor.id} is not assigned to task {task_id}"
            )
        return task

    @traced_function("task.update_status")
    async def update_status(self, task_id: str, status: str, actor: Actor) -> Task:
        """Assignee status change (pending -> in_progress -> review)

        Whether the actor is an assignee is checked by the caller.

        Raises:
            ValidationError: unknown status or illegal transition
            ConflictError: the task changed since it was read
        """
        target = parse_status(status)
        task = await self.get_task(task_id)
        check_assignee_transition(task.status, target)

        document = await self.store.update(
            TASKS,
            task_id,
            {"status": target.value, "updatedAt": timestamp_now()},
            expected_version=task.version,
        )
        logger.info(
            "Task status changed: task=%s, %s -> %s, by=%s",
            task_id,
            task.status.value,
            target.value,
            actor.id,
        )
        return Task.from_document(document)

    @traced_function("task.verify")
    async def verify_task(self, task_id: str, verifier: Actor) -> Task:
        """Complete a task that is in review

        Raises:
            PermissionDeniedError: the verification policy refused the verifier
            ValidationError: TASK_NOT_IN_REVIEW
        """
        task = await self.get_task(task_id)
        if not await self.verification_policy.can_verify(verifier, task):
            raise PermissionDeniedError(
                "VERIFICATION_NOT_ALLOWED", f"{verifier.id} may not verify task {task_id}"
            )
        check_verifiable(task.status)

        now = timestamp_now()
        document = await self.store.update(
            TASKS,
            task_id,
            {
                "status": TaskStatus.COMPLETED.value,
                "verifiedBy": verifier.id,
                "verifiedByName": verifier.display_name,
                "completedAt": now,
                "updatedAt": now,
            },
            expected_version=task.version,
        )
        logger.info("Task verified: task=%s, by=%s", task_id, verifier.id)
        return Task.from_document(document)

    async def update_details(
        self,
        task_id: str,
        title: str | None = None,
        description: str | None = None,
        priority: TaskPriority | None = None,
        deadline: str | None = None,
        difficulty: TaskDifficulty | None = None,
        estimated_hours: float | None = None,
        tags: list[str] | None = None,
        subtasks: list[Subtask] | None = None,
        blockers: list[str] | None = None,
    ) -> Task:
        """Edit non-status fields (None leaves a field unchanged)"""
        fields: dict = {}
        if title is not None:
            if not title.strip():
                raise ValidationError("TITLE_REQUIRED", "Task title is required")
            fields["title"] = title.strip()
        if description is not None:
            fields["description"] = description
        if priority is not None:
            fields["priority"] = TaskPriority(priority).value
        if deadline is not None:
            fields["deadline"] = deadline
        if difficulty is not None:
            fields["difficulty"] = TaskDifficulty(difficulty).value
        if estimated_hours is not None:
            _check_estimated_hours(estimated_hours)
            fields["estimatedHours"] = estimated_hours
        if tags is not None:
            fields["tags"] = list(tags)
        if subtasks is not None:
            fields["subtasks"] = [s.model_dump(mode="json") for s in subtasks]
        if blockers is not None:
            fields["blockers"] = list(blockers)
        fields["updatedAt"] = timestamp_now()

        try:
            document = await self.store.update(TASKS, task_id, fields)
        except NotFoundError:
            raise NotFoundError("TASK_NOT_FOUND", f"Task not found: {task_id}")
        return Task.from_document(document)

    async def list_user_tasks(
        self, user_id: str, group_ids: list[str] | None = None
    ) -> list[Task]:
        """Individual tasks of the user plus group tasks of the user's groups"""
        if group_ids is None:
            group_ids = [g.id for g in await self.group_service.get_user_groups(user_id)]

        documents = list(await self.store.query(TASKS, [eq("assignedTo", user_id)]))
        for group_id in dict.fromkeys(group_ids):
            documents.extend(
                await self.store.query(
                    TASKS, [eq("type", "group"), eq("assignedToGroup", group_id)]
                )
            )

        tasks = {d.id: Task.from_document(d) for d in documents}
        return sorted(tasks.values(), key=lambda t: t.created_at, reverse=True)

    async def list_all_tasks(self) -> list[Task]:
        """Every task, newest first (admin overview)"""
        documents = await self.store.query(TASKS, order_by=NEWEST_FIRST)
        return [Task.from_document(d) for d in documents]

    async def list_group_tasks(self, group_id: str) -> list[Task]:
        documents = await self.store.query(
            TASKS,
            [eq("groupId", group_id), eq("type", "group")],
            order_by=NEWEST_FIRST,
        )
        return [Task.from_document(d) for d in documents]

    async def list_created_tasks(self, user_id: str) -> list[Task]:
        documents = await self.store.query(
            TASKS, [eq("assignedBy", user_id)], order_by=NEWEST_FIRST
        )
        return [Task.from_document(d) for d in documents]

    async def delete_task(self, task_id: str) -> None:
        try:
            await self.store.delete(TASKS, task_id)
        except NotFoundError:
            raise NotFoundError("TASK_NOT_FOUND", f"Task not found: {task_id}")
        logger.info("Task deleted: task=%s", task_id)
