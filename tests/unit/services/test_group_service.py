"""Group directory unit tests"""

import pytest

from spaceborn.core.constants import GROUP_MEMBERS, GROUPS
from spaceborn.core.errors import NotFoundError, ValidationError
from spaceborn.models.group import Group, GroupMember
from spaceborn.repositories.store import MemoryDocumentStore
from spaceborn.services.group_service import GroupService


def member(user_id: str, role: str = "normal_employee", is_lead: bool = False) -> GroupMember:
    return GroupMember(group_id="", user_id=user_id, user_name=user_id.title(), role=role, is_lead=is_lead)


class TestCreateGroup:
    @pytest.mark.asyncio
    async def test_create_group_with_members(
        self, memory_store: MemoryDocumentStore, group_service: GroupService
    ):
        group = await group_service.create_group_with_members(
            "Engineering",
            [member("lead-1", "core_employee", is_lead=True), member("emp-1")],
            created_by="admin-1",
        )

        assert group.member_ids == ["lead-1", "emp-1"]
        assert group.lead_id == "lead-1"
        assert len(memory_store.data[GROUPS]) == 1
        memberships = memory_store.data[GROUP_MEMBERS].values()
        assert {m["data"]["groupId"] for m in memberships} == {group.id}

    @pytest.mark.asyncio
    async def test_create_group_requires_name(self, group_service: GroupService):
        with pytest.raises(ValidationError):
            await group_service.create_group_with_members(" ", [])

    @pytest.mark.asyncio
    async def test_get_missing_group(self, group_service: GroupService):
        with pytest.raises(NotFoundError) as exc:
            await group_service.get_group("missing")
        assert str(exc.value) == "GROUP_NOT_FOUND"


class TestMembershipReads:
    @pytest.mark.asyncio
    async def test_user_groups(self, group_service: GroupService, engineering: Group, design: Group):
        groups = await group_service.get_user_groups("emp-1")

        assert {g.id for g in groups} == {engineering.id, design.id}

    @pytest.mark.asyncio
    async def test_user_groups_skip_inactive_groups(
        self,
        memory_store: MemoryDocumentStore,
        group_service: GroupService,
        engineering: Group,
        design: Group,
    ):
        await memory_store.update(GROUPS, design.id, {"status": "inactive"})

        groups = await group_service.get_user_groups("emp-1")

        assert [g.id for g in groups] == [engineering.id]

    @pytest.mark.asyncio
    async def test_user_without_groups(self, group_service: GroupService, engineering: Group):
        assert await group_service.get_user_groups("nobody") == []

    @pytest.mark.asyncio
    async def test_eligible_members_exclude_actor_and_admins(
        self, group_service: GroupService, engineering: Group
    ):
        eligible = await group_service.get_eligible_members(engineering.id, "core-1")

        assert sorted(m.user_id for m in eligible) == ["emp-1", "intern-1"]

    @pytest.mark.asyncio
    async def test_is_group_lead(self, group_service: GroupService, engineering: Group):
        assert await group_service.is_group_lead("core-1", engineering.id) is True
        assert await group_service.is_group_lead("emp-1", engineering.id) is False


class TestMembershipWrites:
    @pytest.mark.asyncio
    async def test_add_member(self, group_service: GroupService, design: Group):
        await group_service.add_member(design.id, member("emp-3"))

        group = await group_service.get_group(design.id)
        assert group.member_ids == ["emp-1", "emp-2", "emp-3"]
        assert design.id in {g.id for g in await group_service.get_user_groups("emp-3")}

    @pytest.mark.asyncio
    async def test_add_existing_member(self, group_service: GroupService, design: Group):
        with pytest.raises(ValidationError) as exc:
            await group_service.add_member(design.id, member("emp-2"))
        assert str(exc.value) == "ALREADY_MEMBER"

    @pytest.mark.asyncio
    async def test_remove_member(self, group_service: GroupService, design: Group):
        await group_service.remove_member(design.id, "emp-2")

        group = await group_service.get_group(design.id)
        assert group.member_ids == ["emp-1"]
        assert await group_service.get_user_groups("emp-2") == []
        assert [m.user_id for m in await group_service.get_group_members(design.id)] == ["emp-1"]

    @pytest.mark.asyncio
    async def test_remove_non_member(self, group_service: GroupService, design: Group):
        with pytest.raises(NotFoundError) as exc:
            await group_service.remove_member(design.id, "stranger")
        assert str(exc.value) == "MEMBER_NOT_FOUND"
