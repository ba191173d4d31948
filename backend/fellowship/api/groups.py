# fellowship/api/groups.py
from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from fellowship.api.common import service_errors
from fellowship.api.deps import get_context, writer
from fellowship.db import get_db
from fellowship.schemas.group import (
    GroupCreate,
    GroupMemberAssign,
    GroupMemberBulkAssign,
    GroupMemberOut,
    GroupMemberPosition,
    GroupOut,
    GroupUpdate,
)
from fellowship.services import groups as svc
from fellowship.services.context import RequestContext

router = APIRouter(prefix="/groups", tags=["Groups"])


@router.get("/", response_model=List[GroupOut])
def list_groups(
    branch_id: Optional[uuid.UUID] = Query(None),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    return svc.list_groups(db, ctx, branch_id=branch_id)


@router.post("/", response_model=GroupOut, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: GroupCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.create_group(db, ctx, payload)


@router.get("/{group_id}", response_model=GroupOut)
def get_group(
    group_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.get_group(db, ctx, group_id)


@router.patch("/{group_id}", response_model=GroupOut)
def update_group(
    group_id: uuid.UUID,
    payload: GroupUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.update_group(db, ctx, group_id, payload)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_group(
    group_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        svc.deactivate_group(db, ctx, group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{group_id}/close", response_model=GroupOut)
def close_group(
    group_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.close_group(db, ctx, group_id)


# --- members -------------------------------------------------------------------
@router.get("/{group_id}/members", response_model=List[GroupMemberOut])
def list_members(
    group_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.list_group_members(db, ctx, group_id)


@router.post("/{group_id}/members", response_model=GroupMemberOut, status_code=status.HTTP_201_CREATED)
def assign_member(
    group_id: uuid.UUID,
    payload: GroupMemberAssign,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.assign_member(db, ctx, group_id, payload.member_id, payload.position)


@router.post("/{group_id}/members/bulk", response_model=List[GroupMemberOut], status_code=status.HTTP_201_CREATED)
def bulk_assign_members(
    group_id: uuid.UUID,
    payload: GroupMemberBulkAssign,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.bulk_assign_members(db, ctx, group_id, payload.member_ids, payload.position)


@router.patch("/{group_id}/members/{member_id}", response_model=GroupMemberOut)
def update_member_position(
    group_id: uuid.UUID,
    member_id: uuid.UUID,
    payload: GroupMemberPosition,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.update_member_position(db, ctx, group_id, member_id, payload.position)


@router.delete("/{group_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    group_id: uuid.UUID,
    member_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        svc.remove_member(db, ctx, group_id, member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
