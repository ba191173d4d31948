# fellowship/services/groups.py
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from fellowship.models.group import Group, GroupMember, GroupType
from fellowship.models.member import Member
from fellowship.schemas.group import GroupCreate, GroupUpdate
from fellowship.services.branch_scope import scope_predicate
from fellowship.services.context import RequestContext
from fellowship.services.errors import NotFoundError
from fellowship.services.predicates import to_clause
from fellowship.services.records import apply_changes, check_branch_allowed, check_in_scope, commit

logger = logging.getLogger(__name__)


def list_groups(
    db: Session, ctx: RequestContext, branch_id: Optional[uuid.UUID] = None
) -> List[Group]:
    """Active groups of the organization, ordered by name."""
    scope = ctx.scope([branch_id] if branch_id else None)
    if scope.is_empty:
        return []

    conds = [Group.organization_id == ctx.organization_id, Group.is_active.is_(True)]
    branch = scope_predicate(scope)
    if branch is not None:
        conds.append(to_clause(Group, branch))
    stmt = select(Group).where(and_(*conds)).order_by(Group.name.asc())
    return list(db.execute(stmt).scalars().all())


def get_group(db: Session, ctx: RequestContext, group_id: uuid.UUID) -> Group:
    group = db.get(Group, group_id)
    if not group or group.organization_id != ctx.organization_id or not group.is_active:
        raise NotFoundError("Group not found")
    check_in_scope(ctx, group.branch_id, "Group")
    return group


def create_group(db: Session, ctx: RequestContext, payload: GroupCreate) -> Group:
    data = payload.model_dump()
    data["name"] = data["name"].strip()
    check_branch_allowed(ctx, data.get("branch_id"))

    group = Group(
        organization_id=ctx.organization_id,
        created_by=ctx.user_id,
        last_updated_by=ctx.user_id,
        **data,
    )
    db.add(group)
    commit(db, "Group")
    db.refresh(group)
    logger.info("group %s created (%s)", group.id, group.type.value)
    return group


def update_group(db: Session, ctx: RequestContext, group_id: uuid.UUID, payload: GroupUpdate) -> Group:
    group = get_group(db, ctx, group_id)
    data = payload.model_dump(exclude_unset=True)
    if "name" in data and data["name"] is not None:
        data["name"] = data["name"].strip()
    if "branch_id" in data:
        check_branch_allowed(ctx, data["branch_id"])
    if data.get("type") == GroupType.permanent and group.is_closed:
        raise ValueError("A closed group cannot become permanent")

    changed = apply_changes(group, data)
    group.last_updated_by = ctx.user_id
    commit(db, "Group")
    db.refresh(group)
    logger.info("group %s updated: %s", group.id, ", ".join(changed) or "no fields")
    return group


def deactivate_group(db: Session, ctx: RequestContext, group_id: uuid.UUID) -> None:
    group = get_group(db, ctx, group_id)
    group.is_active = False
    group.last_updated_by = ctx.user_id
    commit(db, "Group")
    logger.info("group %s deactivated", group_id)


def close_group(db: Session, ctx: RequestContext, group_id: uuid.UUID) -> Group:
    """Close a temporal group. One-way; permanent groups cannot be closed."""
    group = get_group(db, ctx, group_id)
    if group.type != GroupType.temporal:
        raise ValueError("Only temporal groups can be closed")
    if group.is_closed:
        raise ValueError("Group is already closed")

    group.is_closed = True
    group.last_updated_by = ctx.user_id
    commit(db, "Group")
    db.refresh(group)
    logger.info("group %s closed by %s", group.id, ctx.user_id)
    return group


# --- membership ----------------------------------------------------------------
def _check_member(db: Session, ctx: RequestContext, member_id: uuid.UUID) -> None:
    member = db.get(Member, member_id)
    if not member or member.organization_id != ctx.organization_id or member.is_deleted:
        raise NotFoundError("Member not found")


def _check_open(group: Group) -> None:
    if group.is_closed:
        raise ValueError("Group is closed")


def list_group_members(db: Session, ctx: RequestContext, group_id: uuid.UUID) -> List[GroupMember]:
    get_group(db, ctx, group_id)
    stmt = select(GroupMember).where(GroupMember.group_id == group_id).order_by(GroupMember.assigned_at.asc())
    return list(db.execute(stmt).scalars().all())


def assign_member(
    db: Session, ctx: RequestContext, group_id: uuid.UUID, member_id: uuid.UUID, position: Optional[str] = None
) -> GroupMember:
    group = get_group(db, ctx, group_id)
    _check_open(group)
    _check_member(db, ctx, member_id)

    link = GroupMember(group_id=group.id, member_id=member_id, position=position, assigned_by=ctx.user_id)
    db.add(link)
    commit(db, "Group member")
    db.refresh(link)
    logger.info("member %s assigned to group %s", member_id, group_id)
    return link


def bulk_assign_members(
    db: Session,
    ctx: RequestContext,
    group_id: uuid.UUID,
    member_ids: List[uuid.UUID],
    position: Optional[str] = None,
) -> List[GroupMember]:
    """Assign many members at once; members already in the group are skipped."""
    group = get_group(db, ctx, group_id)
    _check_open(group)

    existing = set(
        db.execute(select(GroupMember.member_id).where(GroupMember.group_id == group_id)).scalars().all()
    )
    added: List[GroupMember] = []
    for member_id in dict.fromkeys(member_ids):
        if member_id in existing:
            continue
        _check_member(db, ctx, member_id)
        link = GroupMember(group_id=group.id, member_id=member_id, position=position, assigned_by=ctx.user_id)
        db.add(link)
        added.append(link)

    commit(db, "Group member")
    for link in added:
        db.refresh(link)
    logger.info("group %s: %d members assigned, %d already present", group_id, len(added), len(member_ids) - len(added))
    return added


def _get_link(db: Session, group_id: uuid.UUID, member_id: uuid.UUID) -> GroupMember:
    link = db.execute(
        select(GroupMember).where(GroupMember.group_id == group_id, GroupMember.member_id == member_id)
    ).scalars().first()
    if link is None:
        raise NotFoundError("Member is not in this group")
    return link


def update_member_position(
    db: Session, ctx: RequestContext, group_id: uuid.UUID, member_id: uuid.UUID, position: Optional[str]
) -> GroupMember:
    get_group(db, ctx, group_id)
    link = _get_link(db, group_id, member_id)
    link.position = position
    commit(db, "Group member")
    db.refresh(link)
    return link


def remove_member(db: Session, ctx: RequestContext, group_id: uuid.UUID, member_id: uuid.UUID) -> None:
    get_group(db, ctx, group_id)
    link = _get_link(db, group_id, member_id)
    db.delete(link)
    commit(db, "Group member")
    logger.info("member %s removed from group %s", member_id, group_id)
