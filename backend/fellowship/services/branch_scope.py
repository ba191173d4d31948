# fellowship/services/branch_scope.py
"""
Branch scope resolution.

Owners and admins can see every branch; everyone else sees rows of the
branches they are assigned to. Rows with no branch belong to the whole
organization and are always admitted by the inclusion predicate.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from fellowship.models.branch import UserBranch
from fellowship.models.organization import UserRole
from fellowship.services.predicates import AnyOf, In, IsNull, Predicate

logger = logging.getLogger(__name__)

PRIVILEGED_ROLES = frozenset({UserRole.owner.value, UserRole.admin.value})


@dataclass(frozen=True)
class BranchScope:
    is_scoped: bool
    branch_ids: Tuple[uuid.UUID, ...] = ()

    @property
    def is_empty(self) -> bool:
        """A scoped caller with no branches may see nothing at all."""
        return self.is_scoped and not self.branch_ids


UNSCOPED = BranchScope(is_scoped=False)


def can_manage_all_data(role: Optional[str]) -> bool:
    if isinstance(role, UserRole):
        role = role.value
    return role in PRIVILEGED_ROLES


def resolve_scope(
    role: Optional[str],
    assigned: Iterable[uuid.UUID],
    selected: Optional[Iterable[uuid.UUID]] = None,
) -> BranchScope:
    selected_ids = list(dict.fromkeys(selected or ()))
    if can_manage_all_data(role):
        if selected_ids:
            return BranchScope(is_scoped=True, branch_ids=tuple(selected_ids))
        return UNSCOPED

    assigned_ids = list(dict.fromkeys(assigned))
    if selected_ids:
        allowed = set(assigned_ids)
        return BranchScope(is_scoped=True, branch_ids=tuple(b for b in selected_ids if b in allowed))
    return BranchScope(is_scoped=True, branch_ids=tuple(assigned_ids))


def scope_predicate(
    scope: BranchScope, field: str = "branch_id", include_null: bool = True
) -> Optional[Predicate]:
    """Inclusion predicate for a scoped caller; None when unscoped."""
    if not scope.is_scoped:
        return None
    inside = In(field, scope.branch_ids)
    if include_null:
        return AnyOf((inside, IsNull(field)))
    return inside


def load_assigned_branch_ids(db: Session, user_id: uuid.UUID, organization_id: uuid.UUID) -> List[uuid.UUID]:
    stmt = select(UserBranch.branch_id).where(
        UserBranch.user_id == user_id,
        UserBranch.organization_id == organization_id,
    )
    return list(db.execute(stmt).scalars().all())
