"""Resource service

Resources are shared with recipients resolved once at creation; listings
read the stored recipient sets back.
"""

import logging

from spaceborn.core.constants import CONTAINS_ANY_LIMIT, DEFAULT_RESOURCE_CATEGORY, RESOURCES
from spaceborn.core.errors import NotFoundError, ValidationError
from spaceborn.core.telemetry import traced_function
from spaceborn.models.actor import Actor
from spaceborn.models.assignment import AllMyGroupsTarget, GroupTarget, IndividualsTarget
from spaceborn.models.resource import Resource, ResourceType
from spaceborn.repositories.store import Document, IDocumentStore, contains, contains_any, eq
from spaceborn.services.assignment_resolver import AssignmentResolver
from spaceborn.services.group_service import GroupService

logger = logging.getLogger(__name__)


def _chunks(values: list[str], size: int = CONTAINS_ANY_LIMIT):
    for start in range(0, len(values), size):
        yield values[start : start + size]


def _newest_first(documents: list[Document]) -> list[Resource]:
    unique = {d.id: Resource.from_document(d) for d in documents}
    return sorted(unique.values(), key=lambda r: r.created_at, reverse=True)


class ResourceService:
    """Resource service"""

    def __init__(
        self,
        store: IDocumentStore,
        group_service: GroupService,
        resolver: AssignmentResolver,
    ):
        self.store = store
        self.group_service = group_service
        self.resolver = resolver

    @traced_function("resource.create")
    async def create_resource(
        self,
        title: str,
        url: str,
        target: IndividualsTarget | GroupTarget | AllMyGroupsTarget,
        actor: Actor,
        group_id: str,
        description: str = "",
        type: ResourceType = "link",
        category: str | None = None,
    ) -> Resource:
        """Share a resource with the recipients the target resolves to

        Raises:
            ValidationError: missing title/url, or the target resolves to
                nobody in a way that is not allowed
        """
        if not title or not title.strip():
            raise ValidationError("TITLE_REQUIRED", "Resource title is required")
        if not url or not url.strip():
            raise ValidationError("URL_REQUIRED", "Resource URL is required")

        assignment = await self.resolver.resolve(target, actor.id)

        resource = Resource(
            title=title.strip(),
            url=url.strip(),
            description=description,
            type=type,
            category=category or DEFAULT_RESOURCE_CATEGORY,
            target_audience=target.mode,
            assigned_to=assignment.assigned_to,
            assigned_to_groups=assignment.assigned_to_groups,
            assigned_by=actor.id,
            group_id=group_id,
        )
        resource_id = await self.store.insert(RESOURCES, resource.to_document())
        logger.info(
            "Resource created: resource=%s, audience=%s, users=%d, groups=%d",
            resource_id,
            target.mode,
            len(assignment.assigned_to),
            len(assignment.assigned_to_groups),
        )
        return resource.model_copy(update={"id": resource_id, "version": 1})

    async def list_user_resources(
        self, user_id: str, group_ids: list[str] | None = None
    ) -> list[Resource]:
        """Resources shared with the user directly or through their groups"""
        if group_ids is None:
            group_ids = [g.id for g in await self.group_service.get_user_groups(user_id)]

        documents = list(await self.store.query(RESOURCES, [contains("assignedTo", user_id)]))
        for chunk in _chunks(list(dict.fromkeys(group_ids))):
            documents.extend(
                await self.store.query(RESOURCES, [contains_any("assignedToGroups", chunk)])
            )
        return _newest_first(documents)

    async def list_group_resources(self, group_id: str) -> list[Resource]:
        """Resources created in the group or shared with it"""
        owned = await self.store.query(RESOURCES, [eq("groupId", group_id)])
        shared = await self.store.query(RESOURCES, [contains("assignedToGroups", group_id)])
        return _newest_first([*owned, *shared])

    async def delete_resource(self, resource_id: str) -> None:
        try:
            await self.store.delete(RESOURCES, resource_id)
        except NotFoundError:
            raise NotFoundError("RESOURCE_NOT_FOUND", f"Resource not found: {resource_id}")
        logger.info("Resource deleted: resource=%s", resource_id)
