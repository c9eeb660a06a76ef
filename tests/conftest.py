"""pytest configuration and shared fixtures

Test infrastructure:
- in-memory document store (no database needed)
- services wired on top of it
- actors and seeded groups
"""

import pytest

from spaceborn.core.config import Settings
from spaceborn.models.actor import Actor, UserRole
from spaceborn.models.group import Group, GroupMember
from spaceborn.repositories.store import MemoryDocumentStore
from spaceborn.repositories.subtopic_repository import SubtopicRepository
from spaceborn.services.assignment_resolver import AssignmentResolver
from spaceborn.services.group_service import GroupService
from spaceborn.services.topic_aggregator import TopicAggregator


# ===== Settings =====


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Settings for tests"""
    return Settings(
        app_env="test",
        debug=True,
        use_memory_store=True,
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key",
    )


# ===== Store / Services =====


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def aggregator(memory_store: MemoryDocumentStore) -> TopicAggregator:
    return TopicAggregator(memory_store, max_retries=3)


@pytest.fixture
def subtopic_repository(
    memory_store: MemoryDocumentStore, aggregator: TopicAggregator
) -> SubtopicRepository:
    return SubtopicRepository(memory_store, aggregator)


@pytest.fixture
def group_service(memory_store: MemoryDocumentStore) -> GroupService:
    return GroupService(memory_store)


@pytest.fixture
def resolver(group_service: GroupService) -> AssignmentResolver:
    return AssignmentResolver(group_service, allow_empty_group_fanout=True)


# ===== Actors =====


@pytest.fixture
def admin() -> Actor:
    return Actor(id="admin-1", role=UserRole.ADMIN, name="Admin")


@pytest.fixture
def core_employee() -> Actor:
    return Actor(id="core-1", role=UserRole.CORE_EMPLOYEE, name="Core Employee")


@pytest.fixture
def employee() -> Actor:
    return Actor(id="emp-1", role=UserRole.NORMAL_EMPLOYEE, name="Employee One")


@pytest.fixture
def intern() -> Actor:
    return Actor(id="intern-1", role=UserRole.INTERN, name="Intern One")


# ===== Groups =====


def make_member(user_id: str, role: str, is_lead: bool = False, name: str = "") -> GroupMember:
    """Membership template (group_id is filled in on creation)"""
    return GroupMember(
        group_id="",
        user_id=user_id,
        user_name=name or user_id,
        user_email=f"{user_id}@spaceborn.test",
        role=role,
        is_lead=is_lead,
    )


@pytest.fixture
async def engineering(group_service: GroupService) -> Group:
    """Group: core-1 (lead), emp-1, intern-1, admin-1"""
    return await group_service.create_group_with_members(
        "Engineering",
        [
            make_member("core-1", UserRole.CORE_EMPLOYEE.value, is_lead=True, name="Core Employee"),
            make_member("emp-1", UserRole.NORMAL_EMPLOYEE.value, name="Employee One"),
            make_member("intern-1", UserRole.INTERN.value, name="Intern One"),
            make_member("admin-1", UserRole.ADMIN.value, name="Admin"),
        ],
        created_by="admin-1",
    )


@pytest.fixture
async def design(group_service: GroupService) -> Group:
    """Group: emp-1 (lead), emp-2"""
    return await group_service.create_group_with_members(
        "Design",
        [
            make_member("emp-1", UserRole.NORMAL_EMPLOYEE.value, is_lead=True, name="Employee One"),
            make_member("emp-2", UserRole.NORMAL_EMPLOYEE.value, name="Employee Two"),
        ],
        created_by="admin-1",
    )
