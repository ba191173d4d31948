# fellowship/services/attendance.py
"""Occasions, sessions and attendance marking."""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Set

from dateutil.rrule import rrulestr
from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session, selectinload

from fellowship.models.attendance import AttendanceOccasion, AttendanceRecord, AttendanceSession, MarkedByMode
from fellowship.models.group import GroupMember
from fellowship.models.member import Member, MemberTagItem
from fellowship.schemas.attendance import (
    MarkAttendance,
    OccasionCreate,
    OccasionUpdate,
    SessionCreate,
    SessionUpdate,
)
from fellowship.services.branch_scope import scope_predicate
from fellowship.services.context import RequestContext
from fellowship.services.errors import NotFoundError
from fellowship.services.pagination import PageRequest, empty_page, execute_page
from fellowship.services.predicates import Eq, Range, to_clause
from fellowship.services.records import (
    apply_changes,
    base_predicates,
    check_branch_allowed,
    check_in_scope,
    commit,
)
from fellowship.services.reshape import member_full_name

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Stored session times are UTC; SQLite keeps only the wall clock."""
    return as_aware(dt).astimezone(timezone.utc)


def session_status(start: datetime, end: datetime, is_open: bool, now: Optional[datetime] = None) -> str:
    now = as_aware(now) or _utcnow()
    start, end = as_aware(start), as_aware(end)
    if now < start:
        return "upcoming"
    if now > end:
        return "past"
    return "active" if is_open else "closed"


def _ids(values) -> List[uuid.UUID]:
    return [v if isinstance(v, uuid.UUID) else uuid.UUID(str(v)) for v in (values or [])]


def _json_ids(values) -> List[str]:
    return [str(v) for v in (values or [])]


# --- occasions -----------------------------------------------------------------
def check_recurrence_rule(rule: Optional[str]) -> None:
    """The rule is stored as given; it only has to parse."""
    if not rule:
        return
    try:
        rrulestr(rule)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid recurrence rule: {e}")


def list_occasions(db: Session, ctx: RequestContext, include_inactive: bool = False) -> List[AttendanceOccasion]:
    scope = ctx.scope()
    if scope.is_empty:
        return []
    conds = [AttendanceOccasion.organization_id == ctx.organization_id]
    if not include_inactive:
        conds.append(AttendanceOccasion.is_active.is_(True))
    branch = scope_predicate(scope)
    if branch is not None:
        conds.append(to_clause(AttendanceOccasion, branch))
    stmt = select(AttendanceOccasion).where(and_(*conds)).order_by(AttendanceOccasion.name.asc())
    return list(db.execute(stmt).scalars().all())


def get_occasion(db: Session, ctx: RequestContext, occasion_id: uuid.UUID) -> AttendanceOccasion:
    occ = db.get(AttendanceOccasion, occasion_id)
    if not occ or occ.organization_id != ctx.organization_id:
        raise NotFoundError("Occasion not found")
    check_in_scope(ctx, occ.branch_id, "Occasion")
    return occ


def create_occasion(db: Session, ctx: RequestContext, payload: OccasionCreate) -> AttendanceOccasion:
    data = payload.model_dump()
    check_recurrence_rule(data.get("recurrence_rule"))
    check_branch_allowed(ctx, data.get("branch_id"))
    occ = AttendanceOccasion(organization_id=ctx.organization_id, created_by=ctx.user_id, **data)
    db.add(occ)
    commit(db, "Occasion")
    db.refresh(occ)
    logger.info("occasion %s created", occ.id)
    return occ


def update_occasion(
    db: Session, ctx: RequestContext, occasion_id: uuid.UUID, payload: OccasionUpdate
) -> AttendanceOccasion:
    occ = get_occasion(db, ctx, occasion_id)
    data = payload.model_dump(exclude_unset=True)
    check_recurrence_rule(data.get("recurrence_rule"))
    if "branch_id" in data:
        check_branch_allowed(ctx, data["branch_id"])
    changed = apply_changes(occ, data)
    commit(db, "Occasion")
    db.refresh(occ)
    logger.info("occasion %s updated: %s", occ.id, ", ".join(changed) or "no fields")
    return occ


def deactivate_occasion(db: Session, ctx: RequestContext, occasion_id: uuid.UUID) -> None:
    occ = get_occasion(db, ctx, occasion_id)
    occ.is_active = False
    commit(db, "Occasion")
    logger.info("occasion %s deactivated", occasion_id)


# --- sessions ------------------------------------------------------------------
def _attendance_counts(db: Session, session_ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
    if not session_ids:
        return {}
    stmt = (
        select(AttendanceRecord.session_id, func.count(AttendanceRecord.id))
        .where(AttendanceRecord.session_id.in_(session_ids), AttendanceRecord.is_valid.is_(True))
        .group_by(AttendanceRecord.session_id)
    )
    return {sid: n for sid, n in db.execute(stmt).all()}


def session_row(s: AttendanceSession, count: int = 0, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "id": s.id,
        "organization_id": s.organization_id,
        "branch_id": s.branch_id,
        "occasion_id": s.occasion_id,
        "occasion_name": s.occasion.name if s.occasion is not None else None,
        "name": s.name,
        "start_time": as_aware(s.start_time),
        "end_time": as_aware(s.end_time),
        "is_open": s.is_open,
        "allow_public_marking": s.allow_public_marking,
        "proximity_required": s.proximity_required,
        "allowed_members": _ids(s.allowed_members),
        "allowed_groups": _ids(s.allowed_groups),
        "allowed_tags": _ids(s.allowed_tags),
        "status": session_status(s.start_time, s.end_time, s.is_open, now),
        "attendance_count": count,
    }


def list_sessions(
    db: Session,
    ctx: RequestContext,
    occasion_id: Optional[uuid.UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: PageRequest = PageRequest(),
) -> Dict[str, Any]:
    scope = ctx.scope()
    if scope.is_empty:
        return empty_page(page)

    preds = base_predicates(ctx, scope)
    if occasion_id is not None:
        preds.append(Eq("occasion_id", occasion_id))
    if start_date or end_date:
        lo = datetime.combine(start_date, time.min, tzinfo=timezone.utc) if start_date else None
        hi = datetime.combine(end_date, time.max, tzinfo=timezone.utc) if end_date else None
        preds.append(Range("start_time", min=lo, max=hi))

    result = execute_page(
        db,
        AttendanceSession,
        preds,
        page,
        order_by=(AttendanceSession.start_time.desc(), AttendanceSession.created_at.desc()),
        options=(selectinload(AttendanceSession.occasion),),
    )
    counts = _attendance_counts(db, [s.id for s in result["data"]])
    result["data"] = [session_row(s, counts.get(s.id, 0)) for s in result["data"]]
    return result


def get_session(db: Session, ctx: RequestContext, session_id: uuid.UUID) -> AttendanceSession:
    s = db.get(AttendanceSession, session_id)
    if not s or s.organization_id != ctx.organization_id or s.is_deleted:
        raise NotFoundError("Session not found")
    check_in_scope(ctx, s.branch_id, "Session")
    return s


def get_session_row(db: Session, ctx: RequestContext, session_id: uuid.UUID) -> Dict[str, Any]:
    s = get_session(db, ctx, session_id)
    return session_row(s, _attendance_counts(db, [s.id]).get(s.id, 0))


def create_session(db: Session, ctx: RequestContext, payload: SessionCreate) -> Dict[str, Any]:
    occ = get_occasion(db, ctx, payload.occasion_id)
    if not occ.is_active:
        raise ValueError("Occasion is inactive")

    data = payload.model_dump()
    for key in ("allowed_members", "allowed_groups", "allowed_tags"):
        data[key] = _json_ids(data[key])
    data["start_time"] = to_utc(data["start_time"])
    data["end_time"] = to_utc(data["end_time"])
    if data.get("branch_id") is None:
        data["branch_id"] = occ.branch_id
    check_branch_allowed(ctx, data["branch_id"])

    s = AttendanceSession(organization_id=ctx.organization_id, created_by=ctx.user_id, **data)
    db.add(s)
    commit(db, "Session")
    db.refresh(s)
    logger.info("session %s created for occasion %s", s.id, occ.id)
    return session_row(s)


def update_session(
    db: Session, ctx: RequestContext, session_id: uuid.UUID, payload: SessionUpdate
) -> Dict[str, Any]:
    s = get_session(db, ctx, session_id)
    data = payload.model_dump(exclude_unset=True)
    for key in ("allowed_members", "allowed_groups", "allowed_tags"):
        if key in data:
            data[key] = _json_ids(data[key])
    if "branch_id" in data:
        check_branch_allowed(ctx, data["branch_id"])

    for key in ("start_time", "end_time"):
        if key in data:
            data[key] = to_utc(data[key])
    start = as_aware(data.get("start_time", s.start_time))
    end = as_aware(data.get("end_time", s.end_time))
    if end <= start:
        raise ValueError("end_time must be after start_time")

    changed = apply_changes(s, data)
    commit(db, "Session")
    db.refresh(s)
    logger.info("session %s updated: %s", s.id, ", ".join(changed) or "no fields")
    return session_row(s, _attendance_counts(db, [s.id]).get(s.id, 0))


def delete_session(db: Session, ctx: RequestContext, session_id: uuid.UUID) -> None:
    s = get_session(db, ctx, session_id)
    s.is_deleted = True
    commit(db, "Session")
    logger.info("session %s deleted", session_id)


# --- marking -------------------------------------------------------------------
def allowed_member_ids(db: Session, s: AttendanceSession) -> Optional[Set[uuid.UUID]]:
    """
    Members allowed to attend: explicit members plus members of the allowed
    groups and tags. None means the session is open to everyone.
    """
    members = _ids(s.allowed_members)
    groups = _ids(s.allowed_groups)
    tags = _ids(s.allowed_tags)
    if not (members or groups or tags):
        return None

    allowed: Set[uuid.UUID] = set(members)
    if groups:
        allowed.update(
            db.execute(select(GroupMember.member_id).where(GroupMember.group_id.in_(groups))).scalars().all()
        )
    if tags:
        allowed.update(
            db.execute(select(MemberTagItem.member_id).where(MemberTagItem.tag_item_id.in_(tags))).scalars().all()
        )
    return allowed


def _record_row(r: AttendanceRecord) -> Dict[str, Any]:
    return {
        "id": r.id,
        "session_id": r.session_id,
        "member_id": r.member_id,
        "member_name": member_full_name(r.member),
        "profile_image_url": r.member.profile_image_url if r.member is not None else None,
        "marked_by": r.marked_by,
        "marked_by_mode": r.marked_by_mode,
        "marked_at": as_aware(r.marked_at),
        "is_valid": r.is_valid,
        "notes": r.notes,
    }


def list_records(db: Session, ctx: RequestContext, session_id: uuid.UUID) -> List[Dict[str, Any]]:
    get_session(db, ctx, session_id)
    stmt = (
        select(AttendanceRecord)
        .where(AttendanceRecord.session_id == session_id)
        .options(selectinload(AttendanceRecord.member))
        .order_by(AttendanceRecord.marked_at.desc())
    )
    return [_record_row(r) for r in db.execute(stmt).scalars().all()]


def mark_attendance(
    db: Session, ctx: RequestContext, session_id: uuid.UUID, payload: MarkAttendance
) -> Dict[str, Any]:
    """Mark a member present. Marking twice updates the existing record."""
    s = get_session(db, ctx, session_id)
    mode = payload.marked_by_mode.value
    if mode != MarkedByMode.manual.value:
        if not s.is_open or session_status(s.start_time, s.end_time, s.is_open) != "active":
            raise ValueError("Session is not open for marking")

    member = db.get(Member, payload.member_id)
    if not member or member.organization_id != ctx.organization_id or member.is_deleted:
        raise NotFoundError("Member not found")

    allowed = allowed_member_ids(db, s)
    if allowed is not None and member.id not in allowed:
        raise ValueError("Member is not allowed to attend this session")

    rec = db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.session_id == s.id,
            AttendanceRecord.member_id == member.id,
        )
    ).scalars().first()
    if rec is None:
        rec = AttendanceRecord(organization_id=ctx.organization_id, session_id=s.id, member_id=member.id)
        db.add(rec)
    rec.marked_by = ctx.user_id
    rec.marked_by_mode = mode
    rec.marked_at = _utcnow()
    rec.is_valid = True
    rec.notes = payload.notes

    commit(db, "Attendance record")
    db.refresh(rec)
    logger.info("member %s marked present in session %s (%s)", member.id, s.id, mode)
    return _record_row(rec)


def unmark_attendance(db: Session, ctx: RequestContext, session_id: uuid.UUID, member_id: uuid.UUID) -> None:
    get_session(db, ctx, session_id)
    rec = db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.session_id == session_id,
            AttendanceRecord.member_id == member_id,
        )
    ).scalars().first()
    if rec is None:
        raise NotFoundError("Attendance record not found")
    db.delete(rec)
    commit(db, "Attendance record")
    logger.info("member %s unmarked from session %s", member_id, session_id)


def session_window(start_date: date, end_date: date):
    """UTC datetime bounds [start, end) covering whole days start_date..end_date."""
    return (
        datetime.combine(start_date, time.min, tzinfo=timezone.utc),
        datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc),
    )
