"""Resource sharing endpoints"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from spaceborn.api.dependencies import get_current_actor, get_resource_service, handle_service_error
from spaceborn.models.actor import Actor
from spaceborn.models.resource import Resource
from spaceborn.schemas import CreateResourceRequest, ErrorResponse, ResourceListResponse
from spaceborn.services.resource_service import ResourceService

router = APIRouter(prefix="/resources", tags=["Resources"])


@router.post(
    "",
    response_model=Resource,
    status_code=status.HTTP_201_CREATED,
    summary="Share resource",
    description="Recipients are resolved from the target once, at creation time.",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
    },
)
async def create_resource(
    request: CreateResourceRequest,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ResourceService, Depends(get_resource_service)],
) -> Resource:
    try:
        return await service.create_resource(
            title=request.title,
            url=request.url,
            target=request.target,
            actor=current_actor,
            group_id=request.group_id,
            description=request.description,
            type=request.type,
            category=request.category,
        )
    except ValueError as e:
        handle_service_error(e)


@router.get(
    "/mine",
    response_model=ResourceListResponse,
    summary="Resources shared with me",
    responses={401: {"model": ErrorResponse}},
)
async def list_my_resources(
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ResourceService, Depends(get_resource_service)],
) -> ResourceListResponse:
    try:
        return ResourceListResponse(items=await service.list_user_resources(current_actor.id))
    except ValueError as e:
        handle_service_error(e)


@router.get(
    "/groups/{group_id}",
    response_model=ResourceListResponse,
    summary="Resources of a group",
    responses={401: {"model": ErrorResponse}},
)
async def list_group_resources(
    group_id: str,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ResourceService, Depends(get_resource_service)],
) -> ResourceListResponse:
    try:
        return ResourceListResponse(items=await service.list_group_resources(group_id))
    except ValueError as e:
        handle_service_error(e)


@router.delete(
    "/{resource_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete resource",
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def delete_resource(
    resource_id: str,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ResourceService, Depends(get_resource_service)],
) -> None:
    try:
        await service.delete_resource(resource_id)
    except ValueError as e:
        handle_service_error(e)
