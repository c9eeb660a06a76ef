"""Group directory

Group and membership reads used by assignment fan-out, plus the membership
writes needed to keep groups and memberIds consistent.
"""

import logging
from uuid import uuid4

from spaceborn.core.constants import GROUP_MEMBERS, GROUPS
from spaceborn.core.errors import NotFoundError, ValidationError
from spaceborn.models.actor import UserRole
from spaceborn.models.base import timestamp_now
from spaceborn.models.group import Group, GroupMember
from spaceborn.repositories.store import IDocumentStore, WriteOp, eq

logger = logging.getLogger(__name__)


class GroupService:
    """Group and membership service"""

    def __init__(self, store: IDocumentStore):
        self.store = store

    async def create_group_with_members(
        self,
        name: str,
        members: list[GroupMember],
        description: str = "",
        created_by: str | None = None,
    ) -> Group:
        """Create a group and its memberships in one batch"""
        if not name or not name.strip():
            raise ValidationError("GROUP_NAME_REQUIRED", "Group name is required")

        group_id = uuid4().hex
        lead = next((m for m in members if m.is_lead), None)
        group = Group(
            id=group_id,
            name=name.strip(),
            description=description,
            member_ids=[m.user_id for m in members],
            lead_id=lead.user_id if lead else None,
            lead_name=lead.user_name if lead else None,
            created_by=created_by,
        )

        ops = [WriteOp("set", GROUPS, group_id, group.to_document())]
        for member in members:
            membership = member.model_copy(update={"group_id": group_id})
            ops.append(WriteOp("set", GROUP_MEMBERS, uuid4().hex, membership.to_document()))
        await self.store.batch_write(ops)

        logger.info("Group created: group=%s, members=%d", group_id, len(members))
        return group.model_copy(update={"version": 1})

    async def get_group(self, group_id: str) -> Group:
        try:
            document = await self.store.get(GROUPS, group_id)
        except NotFoundError:
            raise NotFoundError("GROUP_NOT_FOUND", f"Group not found: {group_id}")
        return Group.from_document(document)

    async def get_group_members(self, group_id: str) -> list[GroupMember]:
        """Active memberships of a group"""
        documents = await self.store.query(
            GROUP_MEMBERS,
            [eq("groupId", group_id), eq("status", "active")],
        )
        return [GroupMember.from_document(d) for d in documents]

    async def get_eligible_members(self, group_id: str, actor_id: str) -> list[GroupMember]:
        """Members selectable as individual recipients: not the actor, not admins"""
        members = await self.get_group_members(group_id)
        return [
            m
            for m in members
            if m.user_id != actor_id and m.role != UserRole.ADMIN.value
        ]

    async def get_user_groups(self, user_id: str) -> list[Group]:
        """Active groups the user is an active member of (always read fresh)"""
        memberships = await self.store.query(
            GROUP_MEMBERS,
            [eq("userId", user_id), eq("status", "active")],
        )

        groups: list[Group] = []
        seen: set[str] = set()
        for membership in memberships:
            group_id = membership.data["groupId"]
            if group_id in seen:
                continue
            seen.add(group_id)
            try:
                group = await self.get_group(group_id)
            except NotFoundError:
                logger.warning(
                    "Membership points at a missing group: user=%s, group=%s",
                    user_id,
                    group_id,
                )
                continue
            if group.status == "active":
                groups.append(group)
        return groups

    async def add_member(self, group_id: str, member: GroupMember) -> GroupMember:
        """Add a membership and the user to the group's memberIds"""
        group = await self.get_group(group_id)
        if member.user_id in group.member_ids:
            raise ValidationError("ALREADY_MEMBER", f"{member.user_id} is already in {group_id}")

        membership_id = uuid4().hex
        membership = member.model_copy(update={"group_id": group_id, "status": "active"})
        await self.store.batch_write(
            [
                WriteOp("set", GROUP_MEMBERS, membership_id, membership.to_document()),
                WriteOp(
                    "update",
                    GROUPS,
                    group_id,
                    {
                        "memberIds": [*group.member_ids, member.user_id],
                        "updatedAt": timestamp_now(),
                    },
                ),
            ]
        )
        return membership.model_copy(update={"id": membership_id, "version": 1})

    async def remove_member(self, group_id: str, user_id: str) -> None:
        """Mark the membership removed and drop the user from memberIds"""
        group = await self.get_group(group_id)
        memberships = await self.store.query(
            GROUP_MEMBERS,
            [eq("groupId", group_id), eq("userId", user_id), eq("status", "active")],
        )
        if not memberships:
            raise NotFoundError("MEMBER_NOT_FOUND", f"{user_id} is not a member of {group_id}")

        ops = [WriteOp("update", GROUP_MEMBERS, m.id, {"status": "removed"}) for m in memberships]
        ops.append(
            WriteOp(
                "update",
                GROUPS,
                group_id,
                {
                    "memberIds": [uid for uid in group.member_ids if uid != user_id],
                    "updatedAt": timestamp_now(),
                },
            )
        )
        await self.store.batch_write(ops)

    async def is_group_lead(self, user_id: str, group_id: str) -> bool:
        memberships = await self.store.query(
            GROUP_MEMBERS,
            [
                eq("groupId", group_id),
                eq("userId", user_id),
                eq("isLead", True),
                eq("status", "active"),
            ],
        )
        return bool(memberships)
