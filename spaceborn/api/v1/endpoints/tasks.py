"""Task endpoints

Assignees move tasks forward with /status; completion only happens through
/verify.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from spaceborn.api.dependencies import get_current_actor, get_task_service, handle_service_error
from spaceborn.models.actor import Actor
from spaceborn.models.task import Task
from spaceborn.schemas import (
    CreateTaskRequest,
    ErrorResponse,
    TaskListResponse,
    UpdateTaskRequest,
    UpdateTaskStatusRequest,
)
from spaceborn.services.task_lifecycle import require_privileged
from spaceborn.services.task_service import TaskService

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.post(
    "",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    summary="Assign task",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def create_task(
    request: CreateTaskRequest,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskService, Depends(get_task_service)],
) -> Task:
    try:
        return await service.create_task(
            title=request.title,
            target=request.target,
            actor=current_actor,
            group_id=request.group_id,
            description=request.description,
            priority=request.priority,
            deadline=request.deadline,
            difficulty=request.difficulty,
            estimated_hours=request.estimated_hours,
            tags=request.tags,
            subtasks=request.subtasks,
            blockers=request.blockers,
        )
    except ValueError as e:
        handle_service_error(e)


@router.get(
    "",
    response_model=TaskListResponse,
    summary="All tasks (admin / core employee)",
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
)
async def list_all_tasks(
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskListResponse:
    """Every task, newest first"""
    try:
        require_privileged(current_actor)
        return TaskListResponse(items=await service.list_all_tasks())
    except ValueError as e:
        handle_service_error(e)


@router.get(
    "/mine",
    response_model=TaskListResponse,
    summary="Tasks assigned to me",
    responses={401: {"model": ErrorResponse}},
)
async def list_my_tasks(
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskListResponse:
    """Individual tasks plus group tasks of my groups, newest first"""
    try:
        return TaskListResponse(items=await service.list_user_tasks(current_actor.id))
    except ValueError as e:
        handle_service_error(e)


@router.get(
    "/created",
    response_model=TaskListResponse,
    summary="Tasks I assigned",
    responses={401: {"model": ErrorResponse}},
)
async def list_created_tasks(
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskListResponse:
    try:
        return TaskListResponse(items=await service.list_created_tasks(current_actor.id))
    except ValueError as e:
        handle_service_error(e)


@router.get(
    "/groups/{group_id}",
    response_model=TaskListResponse,
    summary="Group tasks",
    responses={401: {"model": ErrorResponse}},
)
async def list_group_tasks(
    group_id: str,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskListResponse:
    try:
        return TaskListResponse(items=await service.list_group_tasks(group_id))
    except ValueError as e:
        handle_service_error(e)


@router.patch(
    "/{task_id}/status",
    response_model=Task,
    summary="Change task status (assignee)",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_task_status(
    task_id: str,
    request: UpdateTaskStatusRequest,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskService, Depends(get_task_service)],
) -> Task:
    try:
        await service.ensure_assignee(task_id, current_actor)
        return await service.update_status(task_id, request.status, current_actor)
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "/{task_id}/verify",
    response_model=Task,
    summary="Verify task (review -> completed)",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def verify_task(
    task_id: str,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskService, Depends(get_task_service)],
) -> Task:
    try:
        return await service.verify_task(task_id, current_actor)
    except ValueError as e:
        handle_service_error(e)


@router.patch(
    "/{task_id}",
    response_model=Task,
    summary="Edit task details",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def update_task(
    task_id: str,
    request: UpdateTaskRequest,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskService, Depends(get_task_service)],
) -> Task:
    try:
        return await service.update_details(
            task_id,
            title=request.title,
            description=request.description,
            priority=request.priority,
            deadline=request.deadline,
            difficulty=request.difficulty,
            estimated_hours=request.estimated_hours,
            tags=request.tags,
            subtasks=request.subtasks,
            blockers=request.blockers,
        )
    except ValueError as e:
        handle_service_error(e)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete task",
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def delete_task(
    task_id: str,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskService, Depends(get_task_service)],
) -> None:
    try:
        await service.delete_task(task_id)
    except ValueError as e:
        handle_service_error(e)
