"""Topic / Subtopic progress tracker endpoints

Topic rollup fields are read-only here: they change only as a consequence of
subtopic mutations (or an explicit recompute).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from spaceborn.api.dependencies import (
    get_current_actor,
    get_subtopic_repository,
    get_topic_aggregator,
    handle_service_error,
)
from spaceborn.models.actor import Actor
from spaceborn.models.ansh import Subtopic, Topic
from spaceborn.repositories.subtopic_repository import SubtopicRepository
from spaceborn.schemas import (
    CreateSubtopicRequest,
    CreateTopicRequest,
    ErrorResponse,
    SubtopicListResponse,
    ToggleSubtopicRequest,
    TopicListResponse,
    UpdateTopicRequest,
)
from spaceborn.services.topic_aggregator import TopicAggregator

router = APIRouter(prefix="/topics", tags=["Topics"])


# ===== Topics =====


@router.post(
    "",
    response_model=Topic,
    status_code=status.HTTP_201_CREATED,
    summary="Create topic",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
    },
)
async def create_topic(
    request: CreateTopicRequest,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    aggregator: Annotated[TopicAggregator, Depends(get_topic_aggregator)],
) -> Topic:
    try:
        return await aggregator.create(
            title=request.title,
            description=request.description,
            assigned_group_ids=request.assigned_group_ids,
            assigned_group_names=request.assigned_group_names,
        )
    except ValueError as e:
        handle_service_error(e)


@router.get(
    "",
    response_model=TopicListResponse,
    summary="List topics",
    responses={401: {"model": ErrorResponse}},
)
async def list_topics(
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    aggregator: Annotated[TopicAggregator, Depends(get_topic_aggregator)],
) -> TopicListResponse:
    """All topics, newest first"""
    try:
        return TopicListResponse(items=await aggregator.list_topics())
    except ValueError as e:
        handle_service_error(e)


@router.get(
    "/{topic_id}",
    response_model=Topic,
    summary="Get topic",
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def get_topic(
    topic_id: str,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    aggregator: Annotated[TopicAggregator, Depends(get_topic_aggregator)],
) -> Topic:
    try:
        return await aggregator.get(topic_id)
    except ValueError as e:
        handle_service_error(e)


@router.patch(
    "/{topic_id}",
    response_model=Topic,
    summary="Edit topic details",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def update_topic(
    topic_id: str,
    request: UpdateTopicRequest,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    aggregator: Annotated[TopicAggregator, Depends(get_topic_aggregator)],
) -> Topic:
    try:
        return await aggregator.update_details(
            topic_id,
            title=request.title,
            description=request.description,
            assigned_group_ids=request.assigned_group_ids,
            assigned_group_names=request.assigned_group_names,
        )
    except ValueError as e:
        handle_service_error(e)


@router.delete(
    "/{topic_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete topic and its subtopics",
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def delete_topic(
    topic_id: str,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    aggregator: Annotated[TopicAggregator, Depends(get_topic_aggregator)],
) -> None:
    try:
        await aggregator.delete(topic_id)
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "/{topic_id}/recompute",
    response_model=Topic,
    summary="Recompute topic progress",
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def recompute_topic(
    topic_id: str,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    aggregator: Annotated[TopicAggregator, Depends(get_topic_aggregator)],
) -> Topic:
    try:
        topic = await aggregator.recompute(topic_id)
    except ValueError as e:
        handle_service_error(e)

    if topic is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "NOT_FOUND", "message": "Topic not found"},
        )
    return topic


# ===== Subtopics =====


@router.post(
    "/{topic_id}/subtopics",
    response_model=Subtopic,
    status_code=status.HTTP_201_CREATED,
    summary="Add subtopic",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def create_subtopic(
    topic_id: str,
    request: CreateSubtopicRequest,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    repository: Annotated[SubtopicRepository, Depends(get_subtopic_repository)],
) -> Subtopic:
    try:
        return await repository.create(
            topic_id, request.title, assigned_user_id=request.assigned_user_id
        )
    except ValueError as e:
        handle_service_error(e)


@router.get(
    "/{topic_id}/subtopics",
    response_model=SubtopicListResponse,
    summary="List subtopics",
    responses={401: {"model": ErrorResponse}},
)
async def list_subtopics(
    topic_id: str,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    repository: Annotated[SubtopicRepository, Depends(get_subtopic_repository)],
) -> SubtopicListResponse:
    """Subtopics in creation order"""
    try:
        return SubtopicListResponse(items=await repository.list(topic_id))
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "/{topic_id}/subtopics/{subtopic_id}/toggle",
    response_model=Subtopic,
    summary="Toggle subtopic status",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def toggle_subtopic(
    topic_id: str,
    subtopic_id: str,
    request: ToggleSubtopicRequest,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    repository: Annotated[SubtopicRepository, Depends(get_subtopic_repository)],
) -> Subtopic:
    try:
        return await repository.toggle_status(
            subtopic_id, request.current_status.value, topic_id
        )
    except ValueError as e:
        handle_service_error(e)


@router.delete(
    "/{topic_id}/subtopics/{subtopic_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete subtopic",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def delete_subtopic(
    topic_id: str,
    subtopic_id: str,
    current_actor: Annotated[Actor, Depends(get_current_actor)],
    repository: Annotated[SubtopicRepository, Depends(get_subtopic_repository)],
) -> None:
    try:
        await repository.delete(subtopic_id, topic_id)
    except ValueError as e:
        handle_service_error(e)
