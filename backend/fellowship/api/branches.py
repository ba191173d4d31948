# fellowship/api/branches.py
from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from fellowship.api.common import service_errors
from fellowship.api.deps import admin, get_context
from fellowship.db import get_db
from fellowship.schemas.branch import BranchCreate, BranchOut, BranchUpdate, UserBranchAssign, UserBranchOut
from fellowship.services import branches as svc
from fellowship.services.context import RequestContext

router = APIRouter(prefix="/branches", tags=["Branches"])


@router.get("/", response_model=List[BranchOut])
def list_branches(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    """Branches the caller can select in filters."""
    return svc.list_visible_branches(db, ctx, include_inactive=include_inactive)


@router.post("/", response_model=BranchOut, status_code=status.HTTP_201_CREATED)
def create_branch(
    payload: BranchCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(admin),
):
    with service_errors():
        return svc.create_branch(db, ctx, payload)


@router.get("/{branch_id}", response_model=BranchOut)
def get_branch(
    branch_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.get_branch(db, ctx, branch_id)


@router.patch("/{branch_id}", response_model=BranchOut)
def update_branch(
    branch_id: uuid.UUID,
    payload: BranchUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(admin),
):
    with service_errors():
        return svc.update_branch(db, ctx, branch_id, payload)


@router.delete("/{branch_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_branch(
    branch_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(admin),
):
    with service_errors():
        svc.deactivate_branch(db, ctx, branch_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{branch_id}/users", response_model=UserBranchOut, status_code=status.HTTP_201_CREATED)
def assign_user(
    branch_id: uuid.UUID,
    payload: UserBranchAssign,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(admin),
):
    with service_errors():
        return svc.assign_user(db, ctx, branch_id, payload.user_id)


@router.delete("/{branch_id}/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def unassign_user(
    branch_id: uuid.UUID,
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(admin),
):
    with service_errors():
        svc.unassign_user(db, ctx, branch_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
