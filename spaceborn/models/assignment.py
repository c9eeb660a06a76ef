"""Assignment targets

A target is a tagged union: each mode carries exactly the fields it needs.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class IndividualsTarget(BaseModel):
    """Explicitly selected members"""

    mode: Literal["individuals"] = "individuals"
    member_ids: list[str] = Field(default_factory=list, alias="memberIds")

    model_config = {"populate_by_name": True}


class GroupTarget(BaseModel):
    """The group the entity is created in"""

    mode: Literal["group"] = "group"
    group_id: str = Field(alias="groupId")

    model_config = {"populate_by_name": True}


class AllMyGroupsTarget(BaseModel):
    """Every group the acting user belongs to"""

    mode: Literal["all_my_groups"] = "all_my_groups"


ResourceTarget = Annotated[
    Union[IndividualsTarget, GroupTarget, AllMyGroupsTarget],
    Field(discriminator="mode"),
]


class IndividualTaskTarget(BaseModel):
    """Task assigned to one user"""

    mode: Literal["individual"] = "individual"
    user_id: str = Field(alias="userId")
    user_name: str | None = Field(default=None, alias="userName")

    model_config = {"populate_by_name": True}


class GroupTaskTarget(BaseModel):
    """Task assigned to a whole group"""

    mode: Literal["group"] = "group"
    group_id: str = Field(alias="groupId")

    model_config = {"populate_by_name": True}


TaskTarget = Annotated[
    Union[IndividualTaskTarget, GroupTaskTarget],
    Field(discriminator="mode"),
]


class Assignment(BaseModel):
    """Resolved recipients of a shareable entity"""

    assigned_to: list[str] = Field(default_factory=list)
    assigned_to_groups: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.assigned_to and not self.assigned_to_groups
