from typing import Literal

from pydantic import Field

from spaceborn.core.constants import DEFAULT_RESOURCE_CATEGORY
from spaceborn.models.base import StoredEntity, Timestamp, utcnow

ResourceAudience = Literal["individuals", "group", "all_my_groups"]
ResourceType = Literal["link", "file"]


class Resource(StoredEntity):
    """Shared link or file with a resolved recipient set"""

    title: str
    url: str
    description: str = ""
    type: ResourceType = "link"
    category: str = DEFAULT_RESOURCE_CATEGORY
    target_audience: ResourceAudience
    assigned_to: list[str] = Field(default_factory=list)
    assigned_to_groups: list[str] = Field(default_factory=list)
    assigned_by: str
    group_id: str  # creation group context
    created_at: Timestamp = Field(default_factory=utcnow)
