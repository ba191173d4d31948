# fellowship/services/branches.py
from __future__ import annotations

import logging
import uuid
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from fellowship.models.branch import Branch, UserBranch
from fellowship.models.organization import UserOrganization
from fellowship.schemas.branch import BranchCreate, BranchUpdate
from fellowship.services.context import RequestContext
from fellowship.services.errors import NotFoundError
from fellowship.services.records import apply_changes, commit

logger = logging.getLogger(__name__)


def list_visible_branches(db: Session, ctx: RequestContext, include_inactive: bool = False) -> List[Branch]:
    """Branches the caller may pick from: all for owners/admins, assigned ones otherwise."""
    stmt = select(Branch).where(Branch.organization_id == ctx.organization_id)
    if not include_inactive:
        stmt = stmt.where(Branch.is_active.is_(True))
    if not ctx.can_manage_all_data:
        if not ctx.assigned_branch_ids:
            return []
        stmt = stmt.where(Branch.id.in_(list(ctx.assigned_branch_ids)))
    return list(db.execute(stmt.order_by(Branch.name.asc())).scalars().all())


def _require_admin(ctx: RequestContext) -> None:
    if not ctx.can_manage_all_data:
        raise PermissionError("Only owners and admins can manage branches")


def get_branch(db: Session, ctx: RequestContext, branch_id: uuid.UUID) -> Branch:
    branch = db.get(Branch, branch_id)
    if not branch or branch.organization_id != ctx.organization_id:
        raise NotFoundError("Branch not found")
    return branch


def create_branch(db: Session, ctx: RequestContext, payload: BranchCreate) -> Branch:
    _require_admin(ctx)
    branch = Branch(organization_id=ctx.organization_id, created_by=ctx.user_id, **payload.model_dump())
    db.add(branch)
    commit(db, "Branch")
    db.refresh(branch)
    logger.info("branch %s created", branch.id)
    return branch


def update_branch(db: Session, ctx: RequestContext, branch_id: uuid.UUID, payload: BranchUpdate) -> Branch:
    _require_admin(ctx)
    branch = get_branch(db, ctx, branch_id)
    changed = apply_changes(branch, payload.model_dump(exclude_unset=True))
    commit(db, "Branch")
    db.refresh(branch)
    logger.info("branch %s updated: %s", branch.id, ", ".join(changed) or "no fields")
    return branch


def deactivate_branch(db: Session, ctx: RequestContext, branch_id: uuid.UUID) -> None:
    _require_admin(ctx)
    branch = get_branch(db, ctx, branch_id)
    branch.is_active = False
    commit(db, "Branch")
    logger.info("branch %s deactivated", branch_id)


def assign_user(db: Session, ctx: RequestContext, branch_id: uuid.UUID, user_id: uuid.UUID) -> UserBranch:
    _require_admin(ctx)
    get_branch(db, ctx, branch_id)
    membership = db.execute(
        select(UserOrganization).where(
            UserOrganization.user_id == user_id,
            UserOrganization.organization_id == ctx.organization_id,
        )
    ).scalars().first()
    if membership is None:
        raise NotFoundError("User is not a member of this organization")

    link = UserBranch(
        user_id=user_id,
        branch_id=branch_id,
        organization_id=ctx.organization_id,
        assigned_by=ctx.user_id,
    )
    db.add(link)
    commit(db, "Branch assignment")
    db.refresh(link)
    logger.info("user %s assigned to branch %s", user_id, branch_id)
    return link


def unassign_user(db: Session, ctx: RequestContext, branch_id: uuid.UUID, user_id: uuid.UUID) -> None:
    _require_admin(ctx)
    link = db.execute(
        select(UserBranch).where(
            UserBranch.user_id == user_id,
            UserBranch.branch_id == branch_id,
            UserBranch.organization_id == ctx.organization_id,
        )
    ).scalars().first()
    if link is None:
        raise NotFoundError("Assignment not found")
    db.delete(link)
    commit(db, "Branch assignment")
    logger.info("user %s unassigned from branch %s", user_id, branch_id)
