# fellowship/services/expenses.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session, selectinload

from fellowship.models.expense import Expense
from fellowship.schemas.expense import ExpenseCreate, ExpenseUpdate
from fellowship.schemas.filters import AmountComparison, FinanceFilter
from fellowship.services.context import RequestContext
from fellowship.services.filters import EXPENSE_FILTERS, normalize_filters
from fellowship.services.pagination import PageRequest, empty_page, execute_page, sort_rows
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
from fellowship.services.reshape import reshape_expense

logger = logging.getLogger(__name__)


def list_expenses(
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
        logger.debug("expense list short-circuited: user %s has no branches", ctx.user_id)
        return empty_page(page)

    preds = base_predicates(ctx, scope)
    preds.extend(normalize_filters(filters, EXPENSE_FILTERS, search=search, amount=amount))

    result = execute_page(
        db,
        Expense,
        preds,
        page,
        order_by=(Expense.date.desc(), Expense.created_at.desc()),
        options=(selectinload(Expense.branch),),
        reshape=reshape_expense,
    )
    result["data"] = sort_rows(result["data"], sort_key, sort_direction)
    return result


def get_expense(db: Session, ctx: RequestContext, expense_id: uuid.UUID) -> Dict[str, Any]:
    return reshape_expense(get_visible(db, Expense, ctx, expense_id, "Expense"))


def create_expense(db: Session, ctx: RequestContext, payload: ExpenseCreate) -> Dict[str, Any]:
    data = enum_values(payload.model_dump())
    data["receipt_number"] = normalize_receipt_number(data.get("receipt_number"))
    check_branch_allowed(ctx, data.get("branch_id"))

    exp = Expense(organization_id=ctx.organization_id, created_by=ctx.user_id, **data)
    db.add(exp)
    commit(db, "Expense")
    db.refresh(exp)
    logger.info("expense %s recorded (%s %s)", exp.id, exp.category, exp.amount)
    return reshape_expense(exp)


def update_expense(
    db: Session, ctx: RequestContext, expense_id: uuid.UUID, payload: ExpenseUpdate
) -> Dict[str, Any]:
    exp = get_owned(db, Expense, ctx, expense_id, "Expense")
    data = enum_values(payload.model_dump(exclude_unset=True))
    if "receipt_number" in data:
        data["receipt_number"] = normalize_receipt_number(data["receipt_number"])
    if "branch_id" in data:
        check_branch_allowed(ctx, data["branch_id"])

    changed = apply_changes(exp, data)
    commit(db, "Expense")
    db.refresh(exp)
    logger.info("expense %s updated: %s", exp.id, ", ".join(changed) or "no fields")
    return reshape_expense(exp)


def delete_expense(db: Session, ctx: RequestContext, expense_id: uuid.UUID) -> None:
    exp = get_owned(db, Expense, ctx, expense_id, "Expense")
    exp.is_deleted = True
    commit(db, "Expense")
    logger.info("expense %s deleted", expense_id)
