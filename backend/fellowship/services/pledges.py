# fellowship/services/pledges.py
"""
Pledges and their payments.

A pledge's ``amount_paid``, ``amount_remaining`` and ``status`` are derived
from its live payments and are recomputed in the same transaction as any
payment insert, update or soft delete.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from fellowship.models.pledge import PledgePayment, PledgeRecord, PledgeStatus
from fellowship.schemas.filters import AmountComparison, FinanceFilter
from fellowship.schemas.pledge import PaymentCreate, PaymentUpdate, PledgeCreate, PledgeUpdate
from fellowship.services.context import RequestContext
from fellowship.services.filters import PAYMENT_FILTERS, PLEDGE_FILTERS, normalize_filters
from fellowship.services.pagination import PageRequest, empty_page, execute_page, sort_rows
from fellowship.services.predicates import Eq
from fellowship.services.records import (
    apply_changes,
    base_predicates,
    check_branch_allowed,
    commit,
    enum_values,
    flush,
    get_owned,
    get_visible,
)
from fellowship.services.reshape import reshape_payment, reshape_pledge

logger = logging.getLogger(__name__)

PLEDGE_RELATED = (
    selectinload(PledgeRecord.member),
    selectinload(PledgeRecord.group),
    selectinload(PledgeRecord.tag_item),
    selectinload(PledgeRecord.branch),
)

_PAYMENT_RELATED = (
    selectinload(PledgePayment.pledge).selectinload(PledgeRecord.member),
    selectinload(PledgePayment.pledge).selectinload(PledgeRecord.group),
    selectinload(PledgePayment.pledge).selectinload(PledgeRecord.tag_item),
    selectinload(PledgePayment.branch),
)

ZERO = Decimal("0")


def _dec(x) -> Decimal:
    if x is None:
        return ZERO
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x))


def compute_status(
    current: str, remaining: Decimal, end_date: Optional[date], today: Optional[date] = None
) -> str:
    if current == PledgeStatus.cancelled.value:
        return current
    if remaining <= 0:
        return PledgeStatus.fulfilled.value
    today = today or date.today()
    if end_date is not None and end_date < today:
        return PledgeStatus.overdue.value
    return PledgeStatus.active.value


def sync_pledge_totals(
    db: Session, pledge: PledgeRecord, today: Optional[date] = None, label: str = "Pledge"
) -> None:
    """Recompute paid/remaining/status from live payments. Caller commits."""
    flush(db, label)
    paid = db.execute(
        select(func.coalesce(func.sum(PledgePayment.amount), 0)).where(
            PledgePayment.pledge_id == pledge.id,
            PledgePayment.is_deleted.is_(False),
        )
    ).scalar_one()
    paid = _dec(paid)
    remaining = max(_dec(pledge.pledge_amount) - paid, ZERO)

    pledge.amount_paid = paid
    pledge.amount_remaining = remaining
    pledge.status = compute_status(pledge.status, remaining, pledge.end_date, today)
    logger.debug("pledge %s totals: paid=%s remaining=%s status=%s", pledge.id, paid, remaining, pledge.status)


# --- pledges -------------------------------------------------------------------
def list_pledges(
    db: Session,
    ctx: RequestContext,
    filters: Optional[FinanceFilter] = None,
    search: Optional[str] = None,
    amount: Optional[AmountComparison] = None,
    page: PageRequest = PageRequest(),
    sort_key: Optional[str] = None,
    sort_direction: str = "asc",
) -> Dict[str, Any]:
    scope = ctx.scope()
    if scope.is_empty:
        logger.debug("pledge list short-circuited: user %s has no branches", ctx.user_id)
        return empty_page(page)

    preds = base_predicates(ctx, scope)
    preds.extend(normalize_filters(filters, PLEDGE_FILTERS, search=search, amount=amount))

    result = execute_page(
        db,
        PledgeRecord,
        preds,
        page,
        order_by=(PledgeRecord.start_date.desc(), PledgeRecord.created_at.desc()),
        options=PLEDGE_RELATED,
        reshape=reshape_pledge,
    )
    result["data"] = sort_rows(result["data"], sort_key, sort_direction)
    return result


def get_pledge(db: Session, ctx: RequestContext, pledge_id: uuid.UUID) -> Dict[str, Any]:
    return reshape_pledge(get_visible(db, PledgeRecord, ctx, pledge_id, "Pledge"))


def create_pledge(db: Session, ctx: RequestContext, payload: PledgeCreate) -> Dict[str, Any]:
    data = enum_values(payload.model_dump())
    check_branch_allowed(ctx, data.get("branch_id"))

    pledge = PledgeRecord(
        organization_id=ctx.organization_id,
        created_by=ctx.user_id,
        amount_paid=ZERO,
        amount_remaining=data["pledge_amount"],
        status=PledgeStatus.active.value,
        **data,
    )
    db.add(pledge)
    commit(db, "Pledge")
    db.refresh(pledge)
    logger.info("pledge %s created (%s %s)", pledge.id, pledge.pledge_type, pledge.pledge_amount)
    return reshape_pledge(pledge)


def update_pledge(
    db: Session, ctx: RequestContext, pledge_id: uuid.UUID, payload: PledgeUpdate
) -> Dict[str, Any]:
    pledge = get_owned(db, PledgeRecord, ctx, pledge_id, "Pledge")
    data = enum_values(payload.model_dump(exclude_unset=True))
    if "branch_id" in data:
        check_branch_allowed(ctx, data["branch_id"])

    start = data.get("start_date", pledge.start_date)
    end = data.get("end_date", pledge.end_date)
    if start is not None and end is not None and end < start:
        raise ValueError("end_date must not be before start_date")

    changed = apply_changes(pledge, data)
    sync_pledge_totals(db, pledge)
    commit(db, "Pledge")
    db.refresh(pledge)
    logger.info("pledge %s updated: %s", pledge.id, ", ".join(changed) or "no fields")
    return reshape_pledge(pledge)


def delete_pledge(db: Session, ctx: RequestContext, pledge_id: uuid.UUID) -> None:
    pledge = get_owned(db, PledgeRecord, ctx, pledge_id, "Pledge")
    pledge.is_deleted = True
    commit(db, "Pledge")
    logger.info("pledge %s deleted", pledge_id)


# --- payments ------------------------------------------------------------------
def list_payments(
    db: Session,
    ctx: RequestContext,
    filters: Optional[FinanceFilter] = None,
    search: Optional[str] = None,
    amount: Optional[AmountComparison] = None,
    page: PageRequest = PageRequest(),
    pledge_id: Optional[uuid.UUID] = None,
    sort_key: Optional[str] = None,
    sort_direction: str = "asc",
) -> Dict[str, Any]:
    scope = ctx.scope()
    if scope.is_empty:
        logger.debug("payment list short-circuited: user %s has no branches", ctx.user_id)
        return empty_page(page)

    preds = base_predicates(ctx, scope)
    if pledge_id is not None:
        preds.append(Eq("pledge_id", pledge_id))
    preds.extend(normalize_filters(filters, PAYMENT_FILTERS, search=search, amount=amount))

    result = execute_page(
        db,
        PledgePayment,
        preds,
        page,
        order_by=(PledgePayment.payment_date.desc(), PledgePayment.created_at.desc()),
        options=_PAYMENT_RELATED,
        reshape=reshape_payment,
    )
    result["data"] = sort_rows(result["data"], sort_key, sort_direction)
    return result


def create_payment(
    db: Session, ctx: RequestContext, pledge_id: uuid.UUID, payload: PaymentCreate
) -> Dict[str, Any]:
    pledge = get_visible(db, PledgeRecord, ctx, pledge_id, "Pledge")
    if pledge.status == PledgeStatus.cancelled.value:
        raise ValueError("Cannot record a payment against a cancelled pledge")

    data = enum_values(payload.model_dump())
    if data.get("branch_id") is None:
        data["branch_id"] = pledge.branch_id
    check_branch_allowed(ctx, data["branch_id"])

    payment = PledgePayment(
        organization_id=ctx.organization_id,
        created_by=ctx.user_id,
        pledge_id=pledge.id,
        **data,
    )
    db.add(payment)
    sync_pledge_totals(db, pledge, label="Pledge payment")
    commit(db, "Pledge payment")
    db.refresh(payment)
    logger.info("payment %s recorded on pledge %s (%s)", payment.id, pledge.id, payment.amount)
    return reshape_payment(payment)


def update_payment(
    db: Session, ctx: RequestContext, payment_id: uuid.UUID, payload: PaymentUpdate
) -> Dict[str, Any]:
    payment = get_owned(db, PledgePayment, ctx, payment_id, "Pledge payment")
    data = enum_values(payload.model_dump(exclude_unset=True))
    if "branch_id" in data:
        check_branch_allowed(ctx, data["branch_id"])

    changed = apply_changes(payment, data)
    sync_pledge_totals(db, payment.pledge, label="Pledge payment")
    commit(db, "Pledge payment")
    db.refresh(payment)
    logger.info("payment %s updated: %s", payment.id, ", ".join(changed) or "no fields")
    return reshape_payment(payment)


def delete_payment(db: Session, ctx: RequestContext, payment_id: uuid.UUID) -> None:
    payment = get_owned(db, PledgePayment, ctx, payment_id, "Pledge payment")
    payment.is_deleted = True
    sync_pledge_totals(db, payment.pledge, label="Pledge payment")
    commit(db, "Pledge payment")
    logger.info("payment %s deleted", payment_id)
