# fellowship/services/reports.py
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Set

from sqlalchemy import and_, select
from sqlalchemy.orm import Session, selectinload

from fellowship.models.attendance import AttendanceRecord, AttendanceSession
from fellowship.models.expense import Expense
from fellowship.models.group import GroupMember
from fellowship.models.income import Income
from fellowship.models.member import Member, MemberTagItem
from fellowship.models.pledge import PledgeRecord
from fellowship.schemas.attendance import AttendanceReportQuery
from fellowship.schemas.filters import FinanceFilter
from fellowship.services import aggregations
from fellowship.services.attendance import as_aware, session_window
from fellowship.services.context import RequestContext
from fellowship.services.filters import EXPENSE_FILTERS, INCOME_FILTERS, PLEDGE_FILTERS, normalize_filters
from fellowship.services.income import INCOME_RELATED
from fellowship.services.pledges import PLEDGE_RELATED
from fellowship.services.predicates import In, to_clauses
from fellowship.services.records import base_predicates, fetch_all
from fellowship.services.reshape import reshape_expense, reshape_income, reshape_pledge

logger = logging.getLogger(__name__)


def finance_report(
    db: Session,
    ctx: RequestContext,
    filters: Optional[FinanceFilter] = None,
    expense_grouping: str = "category",
) -> Dict[str, Any]:
    """Income statement style summary over every row the filters match (no paging)."""
    scope = ctx.scope()
    if scope.is_empty:
        return aggregations.finance_summary([], [], [], expense_grouping)

    base = base_predicates(ctx, scope)
    incomes = fetch_all(
        db,
        Income,
        base + normalize_filters(filters, INCOME_FILTERS),
        order_by=(Income.date.desc(),),
        options=INCOME_RELATED,
    )
    expenses = fetch_all(
        db,
        Expense,
        base + normalize_filters(filters, EXPENSE_FILTERS),
        order_by=(Expense.date.desc(),),
        options=(selectinload(Expense.branch),),
    )
    pledges = fetch_all(
        db,
        PledgeRecord,
        base + normalize_filters(filters, PLEDGE_FILTERS),
        order_by=(PledgeRecord.start_date.desc(),),
        options=PLEDGE_RELATED,
    )
    logger.debug("finance report over %d income, %d expense, %d pledge rows", len(incomes), len(expenses), len(pledges))
    return aggregations.finance_summary(
        [reshape_income(r) for r in incomes],
        [reshape_expense(r) for r in expenses],
        [reshape_pledge(r) for r in pledges],
        expense_grouping,
    )


def _member_filter(db: Session, q: AttendanceReportQuery) -> Optional[Set]:
    """Union of explicit members, group members and tag members; None when unfiltered."""
    if not (q.member_ids or q.group_ids or q.tag_item_ids):
        return None
    ids: Set = set(q.member_ids)
    if q.group_ids:
        ids.update(
            db.execute(select(GroupMember.member_id).where(GroupMember.group_id.in_(q.group_ids))).scalars().all()
        )
    if q.tag_item_ids:
        ids.update(
            db.execute(
                select(MemberTagItem.member_id).where(MemberTagItem.tag_item_id.in_(q.tag_item_ids))
            ).scalars().all()
        )
    return ids


def attendance_report(
    db: Session, ctx: RequestContext, q: AttendanceReportQuery, today: Optional[date] = None
) -> Dict[str, Any]:
    today = today or date.today()
    scope = ctx.scope()
    if scope.is_empty:
        return aggregations.attendance_report([], {}, q.start_date, q.end_date, today)

    lo, hi = session_window(q.start_date, q.end_date)
    preds = base_predicates(ctx, scope)
    if q.session_ids:
        preds.append(In("id", tuple(q.session_ids)))
    elif q.occasion_ids:
        preds.append(In("occasion_id", tuple(q.occasion_ids)))

    conds = to_clauses(AttendanceSession, preds)
    conds.extend([AttendanceSession.start_time >= lo, AttendanceSession.start_time < hi])
    sessions = db.execute(select(AttendanceSession).where(and_(*conds))).scalars().all()
    session_map = {
        s.id: {"name": s.name or "Session", "start_time": as_aware(s.start_time)} for s in sessions
    }

    member_ids = _member_filter(db, q)
    if not session_map or member_ids == set():
        return aggregations.attendance_report([], session_map, q.start_date, q.end_date, today)

    stmt = (
        select(AttendanceRecord, Member)
        .join(Member, Member.id == AttendanceRecord.member_id)
        .where(
            AttendanceRecord.session_id.in_(list(session_map)),
            AttendanceRecord.is_valid.is_(True),
        )
    )
    if member_ids is not None:
        stmt = stmt.where(AttendanceRecord.member_id.in_(list(member_ids)))

    genders = {g.strip().lower() for g in q.genders if g.strip()}
    rows: List[Dict[str, Any]] = []
    for rec, member in db.execute(stmt).all():
        age = aggregations.age_on(member.date_of_birth, today)
        if not aggregations.matches_demographics(age, q.demographics):
            continue
        if genders and (member.gender or "").strip().lower() not in genders:
            continue
        rows.append(
            {
                "session_id": rec.session_id,
                "member_id": rec.member_id,
                "marked_at": as_aware(rec.marked_at),
                "gender": member.gender,
                "date_of_birth": member.date_of_birth,
            }
        )

    return aggregations.attendance_report(rows, session_map, q.start_date, q.end_date, today)
