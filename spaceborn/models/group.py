from typing import Literal

from pydantic import Field

from spaceborn.models.base import StoredEntity, Timestamp, utcnow

GroupStatus = Literal["active", "inactive"]
MembershipStatus = Literal["active", "removed"]


class Group(StoredEntity):
    """Team of users"""

    name: str
    description: str = ""
    status: GroupStatus = "active"
    member_ids: list[str] = Field(default_factory=list)
    lead_id: str | None = None
    lead_name: str | None = None
    created_by: str | None = None
    created_at: Timestamp = Field(default_factory=utcnow)
    updated_at: Timestamp = Field(default_factory=utcnow)


class GroupMember(StoredEntity):
    """Membership of one user in one group"""

    group_id: str
    user_id: str
    user_name: str = ""
    user_email: str = ""
    role: str = ""
    is_lead: bool = False
    status: MembershipStatus = "active"
    joined_at: Timestamp = Field(default_factory=utcnow)
