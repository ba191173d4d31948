# fellowship/api/attendance.py
from __future__ import annotations

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from fellowship.api.common import service_errors
from fellowship.api.deps import get_context, writer
from fellowship.db import get_db
from fellowship.schemas.attendance import (
    AttendanceRecordOut,
    MarkAttendance,
    OccasionCreate,
    OccasionOut,
    OccasionUpdate,
    SessionCreate,
    SessionOut,
    SessionUpdate,
)
from fellowship.schemas.common import Page
from fellowship.services import attendance as svc
from fellowship.services.context import RequestContext
from fellowship.services.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PageRequest

router = APIRouter(prefix="/attendance", tags=["Attendance"])


# --- occasions -----------------------------------------------------------------
@router.get("/occasions", response_model=List[OccasionOut])
def list_occasions(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    return svc.list_occasions(db, ctx, include_inactive=include_inactive)


@router.post("/occasions", response_model=OccasionOut, status_code=status.HTTP_201_CREATED)
def create_occasion(
    payload: OccasionCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.create_occasion(db, ctx, payload)


@router.get("/occasions/{occasion_id}", response_model=OccasionOut)
def get_occasion(
    occasion_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.get_occasion(db, ctx, occasion_id)


@router.patch("/occasions/{occasion_id}", response_model=OccasionOut)
def update_occasion(
    occasion_id: uuid.UUID,
    payload: OccasionUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.update_occasion(db, ctx, occasion_id, payload)


@router.delete("/occasions/{occasion_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_occasion(
    occasion_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        svc.deactivate_occasion(db, ctx, occasion_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- sessions ------------------------------------------------------------------
@router.get("/sessions", response_model=Page[SessionOut])
def list_sessions(
    occasion_id: Optional[uuid.UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    return svc.list_sessions(
        db,
        ctx,
        occasion_id=occasion_id,
        start_date=start_date,
        end_date=end_date,
        page=PageRequest(page=page, page_size=page_size),
    )


@router.post("/sessions", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: SessionCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.create_session(db, ctx, payload)


@router.get("/sessions/{session_id}", response_model=SessionOut)
def get_session(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.get_session_row(db, ctx, session_id)


@router.patch("/sessions/{session_id}", response_model=SessionOut)
def update_session(
    session_id: uuid.UUID,
    payload: SessionUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.update_session(db, ctx, session_id, payload)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        svc.delete_session(db, ctx, session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- records -------------------------------------------------------------------
@router.get("/sessions/{session_id}/records", response_model=List[AttendanceRecordOut])
def list_records(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.list_records(db, ctx, session_id)


@router.post("/sessions/{session_id}/records", response_model=AttendanceRecordOut)
def mark_attendance(
    session_id: uuid.UUID,
    payload: MarkAttendance,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.mark_attendance(db, ctx, session_id, payload)


@router.delete("/sessions/{session_id}/records/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def unmark_attendance(
    session_id: uuid.UUID,
    member_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        svc.unmark_attendance(db, ctx, session_id, member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
