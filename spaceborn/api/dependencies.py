"""Shared API dependencies"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from spaceborn.models.actor import Actor
from spaceborn.repositories.store import (
    GuardedDocumentStore,
    IDocumentStore,
    create_document_store,
)
from spaceborn.repositories.subtopic_repository import SubtopicRepository
from spaceborn.services.assignment_resolver import AssignmentResolver
from spaceborn.services.auth_service import IIdentityProvider, JWTIdentityProvider
from spaceborn.services.group_service import GroupService
from spaceborn.services.resource_service import ResourceService
from spaceborn.services.task_lifecycle import LeadOrPrivilegedVerificationPolicy
from spaceborn.services.task_service import TaskService
from spaceborn.services.topic_aggregator import TopicAggregator

security = HTTPBearer()


# ===== Store / Service Dependencies =====


@lru_cache
def get_document_store() -> GuardedDocumentStore:
    """Process-wide document store"""
    return create_document_store()


@lru_cache
def get_topic_aggregator() -> TopicAggregator:
    """Process-wide aggregator (its per-topic lock registry must be shared)"""
    return TopicAggregator(get_document_store())


def get_subtopic_repository(
    store: Annotated[IDocumentStore, Depends(get_document_store)],
    aggregator: Annotated[TopicAggregator, Depends(get_topic_aggregator)],
) -> SubtopicRepository:
    return SubtopicRepository(store, aggregator)


def get_group_service(
    store: Annotated[IDocumentStore, Depends(get_document_store)],
) -> GroupService:
    return GroupService(store)


def get_assignment_resolver(
    group_service: Annotated[GroupService, Depends(get_group_service)],
) -> AssignmentResolver:
    return AssignmentResolver(group_service)


def get_resource_service(
    store: Annotated[IDocumentStore, Depends(get_document_store)],
    group_service: Annotated[GroupService, Depends(get_group_service)],
    resolver: Annotated[AssignmentResolver, Depends(get_assignment_resolver)],
) -> ResourceService:
    return ResourceService(store, group_service, resolver)


def get_task_service(
    store: Annotated[IDocumentStore, Depends(get_document_store)],
    group_service: Annotated[GroupService, Depends(get_group_service)],
    resolver: Annotated[AssignmentResolver, Depends(get_assignment_resolver)],
) -> TaskService:
    return TaskService(
        store,
        group_service,
        resolver,
        LeadOrPrivilegedVerificationPolicy(group_service),
    )


# ===== Auth Dependencies =====


def get_identity_provider() -> IIdentityProvider:
    return JWTIdentityProvider()


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    identity: Annotated[IIdentityProvider, Depends(get_identity_provider)],
) -> Actor:
    """Current actor from the bearer token"""
    try:
        return await identity.current_actor(credentials.credentials)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "INVALID_TOKEN", "message": "Invalid or expired token"},
        )


# ===== Service Error Handling =====

# service error code -> (status_code, error_code, message)
SERVICE_ERROR_MAPPING: dict[str, tuple[int, str, str]] = {
    # not found
    "TOPIC_NOT_FOUND": (404, "NOT_FOUND", "Topic not found"),
    "SUBTOPIC_NOT_FOUND": (404, "NOT_FOUND", "Subtopic not found"),
    "TASK_NOT_FOUND": (404, "NOT_FOUND", "Task not found"),
    "RESOURCE_NOT_FOUND": (404, "NOT_FOUND", "Resource not found"),
    "GROUP_NOT_FOUND": (404, "NOT_FOUND", "Group not found"),
    "MEMBER_NOT_FOUND": (404, "NOT_FOUND", "Member not found"),
    "DOCUMENT_NOT_FOUND": (404, "NOT_FOUND", "Document not found"),
    # permission
    "PERMISSION_DENIED": (403, "FORBIDDEN", "Permission denied"),
    "NOT_TASK_ASSIGNEE": (403, "FORBIDDEN", "Only an assignee can change the task status"),
    "VERIFICATION_NOT_ALLOWED": (403, "FORBIDDEN", "Not allowed to verify this task"),
    # validation
    "TITLE_REQUIRED": (400, "BAD_REQUEST", "Title is required"),
    "URL_REQUIRED": (400, "BAD_REQUEST", "URL is required"),
    "GROUP_REQUIRED": (400, "BAD_REQUEST", "A group is required"),
    "NO_MEMBERS_SELECTED": (400, "BAD_REQUEST", "Select at least one member"),
    "NO_MEMBER_SELECTED": (400, "BAD_REQUEST", "Please select a member"),
    "NO_GROUPS_FOR_ACTOR": (400, "BAD_REQUEST", "You are not a member of any active group"),
    "SUBTOPIC_TOPIC_MISMATCH": (400, "BAD_REQUEST", "Subtopic does not belong to the topic"),
    "INVALID_SUBTOPIC_STATUS": (400, "BAD_REQUEST", "Invalid subtopic status"),
    "INVALID_TASK_STATUS": (400, "BAD_REQUEST", "Invalid task status"),
    "INVALID_ESTIMATED_HOURS": (400, "BAD_REQUEST", "Estimated hours must not be negative"),
    "INVALID_TRANSITION": (400, "BAD_REQUEST", "Invalid status transition"),
    "COMPLETION_REQUIRES_VERIFICATION": (
        400,
        "BAD_REQUEST",
        "Tasks are completed through verification",
    ),
    "TASK_NOT_IN_REVIEW": (400, "BAD_REQUEST", "Only tasks in review can be verified"),
    # concurrency / store
    "VERSION_CONFLICT": (409, "CONFLICT", "The document was modified concurrently"),
    "DOCUMENT_EXISTS": (409, "CONFLICT", "Document already exists"),
    "RECOMPUTE_CONFLICT": (409, "CONFLICT", "Topic progress could not be updated, retry"),
    "TOPIC_DELETE_CONFLICT": (409, "CONFLICT", "Topic changed while being deleted, retry"),
    "STORE_TIMEOUT": (504, "STORE_TIMEOUT", "The data store did not respond in time"),
    "STORE_ERROR": (503, "STORE_ERROR", "The data store is unavailable"),
}


def handle_service_error(error: ValueError, default_message: str = "Validation error") -> None:
    """Convert a service-layer error into an HTTPException

    Args:
        error: ValueError raised by a service (str(error) is the error code)
        default_message: message for codes missing from the mapping

    Raises:
        HTTPException: mapped HTTP error response
    """
    error_code = str(error)

    if error_code in SERVICE_ERROR_MAPPING:
        status_code, code, message = SERVICE_ERROR_MAPPING[error_code]
        raise HTTPException(
            status_code=status_code,
            detail={"error": code, "message": message},
        )

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "VALIDATION_ERROR", "message": getattr(error, "message", default_message)},
    )
