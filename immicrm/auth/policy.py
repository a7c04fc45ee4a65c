"""
Declarative access policy.

Every restricted operation is a row in ``POLICIES`` keyed by
``(Action, Resource)``. A row names the roles allowed to perform it and
whether the resource's owner may do so regardless of role. Pairs that are
not listed only require an authenticated identity.
"""

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from immicrm.auth.models import UserRole
from immicrm.auth.schemas import Identity
from immicrm.common.exceptions import PermissionDeniedError


class Action(str, enum.Enum):
    create = "create"
    read = "read"
    update = "update"
    delete = "delete"


class Resource(str, enum.Enum):
    user = "user"
    client = "client"
    case = "case"
    case_note = "case_note"
    task = "task"
    document = "document"
    interaction = "interaction"
    dashboard = "dashboard"


@dataclass(frozen=True)
class Policy:
    roles: frozenset[UserRole]
    owner_exempt: bool = False


POLICIES: dict[tuple[Action, Resource], Policy] = {
    (Action.create, Resource.user): Policy(roles=frozenset({UserRole.admin})),
    (Action.delete, Resource.client): Policy(roles=frozenset({UserRole.admin, UserRole.manager})),
    (Action.delete, Resource.case): Policy(roles=frozenset({UserRole.admin, UserRole.manager})),
    (Action.delete, Resource.case_note): Policy(roles=frozenset({UserRole.admin}), owner_exempt=True),
}


def get_policy(action: Action, resource: Resource) -> Optional[Policy]:
    return POLICIES.get((action, resource))


def require_role(identity: Identity, allowed_roles: Iterable[UserRole]) -> None:
    if identity.role not in set(allowed_roles):
        raise PermissionDeniedError()


def require_ownership_or_role(identity: Identity, owner_id: Optional[int], allowed_roles: Iterable[UserRole]) -> None:
    if owner_id is not None and identity.id == owner_id:
        return
    if identity.role not in set(allowed_roles):
        raise PermissionDeniedError("Only the owner or an administrator may do this")


def authorize(identity: Identity, action: Action, resource: Resource, owner_id: Optional[int] = None) -> None:
    """Raise PermissionDeniedError unless the policy table lets ``identity`` act."""
    policy = get_policy(action, resource)
    if policy is None:
        return
    if policy.owner_exempt:
        require_ownership_or_role(identity, owner_id, policy.roles)
    else:
        require_role(identity, policy.roles)


def needs_owner(action: Action, resource: Resource) -> bool:
    policy = get_policy(action, resource)
    return policy is not None and policy.owner_exempt
