"""Assignment resolver

Turns a targeting choice into the concrete recipient sets stored on a
Resource or Task. Resolution happens once, at creation time.
"""

import logging

from spaceborn.core.config import get_settings
from spaceborn.core.errors import ValidationError
from spaceborn.models.assignment import (
    AllMyGroupsTarget,
    Assignment,
    GroupTarget,
    GroupTaskTarget,
    IndividualsTarget,
    IndividualTaskTarget,
)
from spaceborn.services.group_service import GroupService

logger = logging.getLogger(__name__)


class AssignmentResolver:
    """Resolve targeting modes into assignedTo / assignedToGroups"""

    def __init__(
        self,
        group_service: GroupService,
        allow_empty_group_fanout: bool | None = None,
    ):
        self.group_service = group_service
        if allow_empty_group_fanout is None:
            allow_empty_group_fanout = get_settings().allow_empty_group_fanout
        self.allow_empty_group_fanout = allow_empty_group_fanout

    async def resolve(
        self,
        target: IndividualsTarget | GroupTarget | AllMyGroupsTarget,
        actor_id: str,
    ) -> Assignment:
        """Recipients of a resource

        Members chosen in individuals mode are accepted as given; role
        eligibility is not re-checked here.

        Raises:
            ValidationError: NO_MEMBERS_SELECTED, NO_GROUPS_FOR_ACTOR
        """
        if isinstance(target, IndividualsTarget):
            member_ids = list(target.member_ids)
            if not member_ids:
                raise ValidationError("NO_MEMBERS_SELECTED", "Select at least one member")
            return Assignment(assigned_to=member_ids)

        if isinstance(target, GroupTarget):
            if not target.group_id:
                raise ValidationError("GROUP_REQUIRED", "A group is required")
            return Assignment(assigned_to_groups=[target.group_id])

        if isinstance(target, AllMyGroupsTarget):
            groups = await self.group_service.get_user_groups(actor_id)
            group_ids = [g.id for g in groups if g.id]
            if not group_ids:
                if not self.allow_empty_group_fanout:
                    raise ValidationError(
                        "NO_GROUPS_FOR_ACTOR", "You are not a member of any active group"
                    )
                logger.warning("all_my_groups resolved to no groups: actor=%s", actor_id)
            return Assignment(assigned_to_groups=group_ids)

        raise ValidationError("INVALID_TARGET", f"Unknown target: {target!r}")

    def resolve_task(self, target: IndividualTaskTarget | GroupTaskTarget) -> Assignment:
        """Recipients of a task: one user or one whole group"""
        if isinstance(target, IndividualTaskTarget):
            if not target.user_id:
                raise ValidationError("NO_MEMBER_SELECTED", "Please select a member")
            return Assignment(assigned_to=[target.user_id])

        if isinstance(target, GroupTaskTarget):
            if not target.group_id:
                raise ValidationError("GROUP_REQUIRED", "A group is required")
            return Assignment(assigned_to_groups=[target.group_id])

        raise ValidationError("INVALID_TARGET", f"Unknown target: {target!r}")
