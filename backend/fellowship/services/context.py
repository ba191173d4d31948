# fellowship/services/context.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from fellowship.models.organization import UserRole
from fellowship.services.branch_scope import BranchScope, can_manage_all_data, resolve_scope

WRITE_ROLES = frozenset(
    {UserRole.owner.value, UserRole.admin.value, UserRole.branch_admin.value, UserRole.write.value}
)


@dataclass(frozen=True)
class RequestContext:
    """Who is calling, for which organization. Passed explicitly to every service call."""
    organization_id: uuid.UUID
    user_id: uuid.UUID
    role: str
    assigned_branch_ids: Tuple[uuid.UUID, ...] = ()

    @property
    def can_manage_all_data(self) -> bool:
        return can_manage_all_data(self.role)

    @property
    def can_write(self) -> bool:
        return self.role in WRITE_ROLES

    def scope(self, selected: Optional[Iterable[uuid.UUID]] = None) -> BranchScope:
        return resolve_scope(self.role, self.assigned_branch_ids, selected)
