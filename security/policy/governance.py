"""
Role assignment rules: who may hand out which role, and who may manage whom.

Assignment is an explicit per-role table. Management is derived from the
hierarchy and is strict: a role never manages its own level.
"""

from types import MappingProxyType
from typing import FrozenSet, Mapping

from security.policy.permissions import (
    Role,
    RoleLike,
    hierarchy_level,
    parse_role,
    require_total,
)


_ASSIGNABLE_ROLES: Mapping[Role, FrozenSet[Role]] = MappingProxyType({
    Role.SUPER_ADMIN: frozenset(Role),
    Role.PARTNER: frozenset({
        Role.SENIOR_ASSOCIATE,
        Role.JUNIOR_ASSOCIATE,
        Role.PARALEGAL,
        Role.CLIENT,
        Role.GUEST,
    }),
    Role.SENIOR_ASSOCIATE: frozenset({
        Role.JUNIOR_ASSOCIATE,
        Role.PARALEGAL,
    }),
    Role.JUNIOR_ASSOCIATE: frozenset(),
    Role.PARALEGAL: frozenset(),
    Role.CLIENT: frozenset(),
    Role.GUEST: frozenset(),
})

require_total(_ASSIGNABLE_ROLES, "assignable roles")


def assignable_roles(current_role: RoleLike) -> FrozenSet[Role]:
    """Get the roles a user with ``current_role`` may assign to others."""
    return _ASSIGNABLE_ROLES[parse_role(current_role)]


def can_assign_role(current_role: RoleLike, target_role: RoleLike) -> bool:
    """Check if ``current_role`` may assign ``target_role``."""
    return parse_role(target_role) in assignable_roles(current_role)


def can_manage_user(current_role: RoleLike, target_role: RoleLike) -> bool:
    """Check if ``current_role`` ranks strictly above ``target_role``."""
    return hierarchy_level(current_role) > hierarchy_level(target_role)


def can_change_role(actor_role: RoleLike, target_current_role: RoleLike, new_role: RoleLike) -> bool:
    """
    Check a role change on another user.

    The actor must outrank the target's current role and be allowed to
    assign the new one. Both halves are required: a partner may promote a
    paralegal to senior associate, but may neither demote another partner
    nor create one.
    """
    return (
        can_manage_user(actor_role, target_current_role)
        and can_assign_role(actor_role, new_role)
    )
