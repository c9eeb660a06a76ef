from pydantic import BaseModel, ConfigDict, Field

from spaceborn.models.assignment import ResourceTarget
from spaceborn.models.resource import Resource, ResourceType


class CreateResourceRequest(BaseModel):
    """Resource creation request"""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, max_length=200)
    url: str = Field(min_length=1)
    description: str = ""
    type: ResourceType = "link"
    category: str | None = None
    group_id: str = Field(alias="groupId")
    target: ResourceTarget


class ResourceListResponse(BaseModel):
    items: list[Resource]
