from pydantic import BaseModel, ConfigDict, Field

from spaceborn.models.ansh import Subtopic, SubtopicStatus, Topic


class CreateTopicRequest(BaseModel):
    """Topic creation request"""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    assigned_group_ids: list[str] = Field(default_factory=list, alias="assignedGroupIds")
    assigned_group_names: list[str] = Field(default_factory=list, alias="assignedGroupNames")


class UpdateTopicRequest(BaseModel):
    """Topic edit request (rollup fields are rejected)"""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    assigned_group_ids: list[str] | None = Field(default=None, alias="assignedGroupIds")
    assigned_group_names: list[str] | None = Field(default=None, alias="assignedGroupNames")


class TopicListResponse(BaseModel):
    items: list[Topic]


class CreateSubtopicRequest(BaseModel):
    """Subtopic creation request"""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, max_length=200)
    assigned_user_id: str | None = Field(default=None, alias="assignedUserId")


class ToggleSubtopicRequest(BaseModel):
    """Status toggle, carrying the status the caller currently sees"""

    model_config = ConfigDict(populate_by_name=True)

    current_status: SubtopicStatus = Field(alias="currentStatus")


class SubtopicListResponse(BaseModel):
    items: list[Subtopic]
