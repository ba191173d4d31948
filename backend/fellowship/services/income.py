# fellowship/services/income.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session, selectinload

from fellowship.models.attendance import AttendanceSession
from fellowship.models.income import Income, IncomeType
from fellowship.schemas.filters import AmountComparison, FinanceFilter
from fellowship.schemas.income import IncomeCreate, IncomeUpdate
from fellowship.services.context import RequestContext
from fellowship.services.filters import INCOME_FILTERS, normalize_filters
from fellowship.services.pagination import PageRequest, empty_page, execute_page, sort_rows
from fellowship.services.predicates import Eq
from fellowship.services.receipts import normalize_receipt_number
from fellowship.services.records import (
    apply_changes,
    base_predicates,
    check_branch_allowed,
    commit,
    enum_values,
    get_owned,
    get_visible,
)
from fellowship.services.reshape import reshape_income

logger = logging.getLogger(__name__)

INCOME_RELATED = (
    selectinload(Income.member),
    selectinload(Income.group),
    selectinload(Income.tag_item),
    selectinload(Income.occasion),
    selectinload(Income.session).selectinload(AttendanceSession.occasion),
    selectinload(Income.branch),
)


def list_income(
    db: Session,
    ctx: RequestContext,
    filters: Optional[FinanceFilter] = None,
    search: Optional[str] = None,
    amount: Optional[AmountComparison] = None,
    page: PageRequest = PageRequest(),
    income_type: Optional[str] = None,
    sort_key: Optional[str] = None,
    sort_direction: str = "asc",
) -> Dict[str, Any]:
    """
    One page of income rows visible to the caller. A fixed ``income_type``
    (e.g. the contributions view) is applied on top of the filter object.
    """
    scope = ctx.scope()
    if scope.is_empty:
        logger.debug("income list short-circuited: user %s has no branches", ctx.user_id)
        return empty_page(page)

    preds = base_predicates(ctx, scope)
    if income_type:
        preds.append(Eq("income_type", income_type))
    preds.extend(normalize_filters(filters, INCOME_FILTERS, search=search, amount=amount))

    result = execute_page(
        db,
        Income,
        preds,
        page,
        order_by=(Income.date.desc(), Income.created_at.desc()),
        options=INCOME_RELATED,
        reshape=reshape_income,
    )
    result["data"] = sort_rows(result["data"], sort_key, sort_direction)
    return result


def get_income(db: Session, ctx: RequestContext, income_id: uuid.UUID) -> Dict[str, Any]:
    return reshape_income(get_visible(db, Income, ctx, income_id, "Income"))


def create_income(
    db: Session, ctx: RequestContext, payload: IncomeCreate, income_type: Optional[IncomeType] = None
) -> Dict[str, Any]:
    data = enum_values(payload.model_dump())
    if income_type is not None:
        data["income_type"] = income_type.value
    data["receipt_number"] = normalize_receipt_number(data.get("receipt_number"))
    check_branch_allowed(ctx, data.get("branch_id"))

    rec = Income(organization_id=ctx.organization_id, created_by=ctx.user_id, **data)
    db.add(rec)
    commit(db, "Income")
    db.refresh(rec)
    logger.info("income %s recorded (%s %s)", rec.id, rec.income_type, rec.amount)
    return reshape_income(rec)


def update_income(
    db: Session, ctx: RequestContext, income_id: uuid.UUID, payload: IncomeUpdate
) -> Dict[str, Any]:
    rec = get_owned(db, Income, ctx, income_id, "Income")
    data = enum_values(payload.model_dump(exclude_unset=True))
    if "receipt_number" in data:
        data["receipt_number"] = normalize_receipt_number(data["receipt_number"])
    if "branch_id" in data:
        check_branch_allowed(ctx, data["branch_id"])

    changed = apply_changes(rec, data)
    commit(db, "Income")
    db.refresh(rec)
    logger.info("income %s updated: %s", rec.id, ", ".join(changed) or "no fields")
    return reshape_income(rec)


def delete_income(db: Session, ctx: RequestContext, income_id: uuid.UUID) -> None:
    rec = get_owned(db, Income, ctx, income_id, "Income")
    rec.is_deleted = True
    commit(db, "Income")
    logger.info("income %s deleted", income_id)
