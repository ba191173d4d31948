# fellowship/api/reports.py
from __future__ import annotations

import json
import uuid
from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from fellowship.api.common import parse_filters, service_errors
from fellowship.api.deps import get_context
from fellowship.db import get_db
from fellowship.schemas.attendance import AttendanceReportOut, AttendanceReportQuery
from fellowship.services import reports as svc
from fellowship.services.context import RequestContext

router = APIRouter(prefix="/reports", tags=["Reports"])


# ---------- /reports/finance ----------
@router.get("/finance")
def finance_report(
    filters: Optional[str] = Query(None, description="JSON-encoded filter object"),
    expense_grouping: Literal["category", "purpose"] = Query("category"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    """Income sections, expense breakdown, pledge totals and net for the filtered rows."""
    with service_errors():
        return svc.finance_report(db, ctx, parse_filters(filters), expense_grouping=expense_grouping)


# ---------- /reports/attendance ----------
@router.get("/attendance", response_model=AttendanceReportOut)
def attendance_report(
    start_date: date,
    end_date: date,
    occasion_ids: List[uuid.UUID] = Query([]),
    session_ids: List[uuid.UUID] = Query([]),
    member_ids: List[uuid.UUID] = Query([]),
    group_ids: List[uuid.UUID] = Query([]),
    tag_item_ids: List[uuid.UUID] = Query([]),
    demographics: List[str] = Query([], description="children, young_adults, adults"),
    genders: List[str] = Query([]),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    try:
        q = AttendanceReportQuery(
            start_date=start_date,
            end_date=end_date,
            occasion_ids=occasion_ids,
            session_ids=session_ids,
            member_ids=member_ids,
            group_ids=group_ids,
            tag_item_ids=tag_item_ids,
            demographics=demographics,
            genders=genders,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=json.loads(e.json(include_url=False)),
        )
    with service_errors():
        return svc.attendance_report(db, ctx, q)
