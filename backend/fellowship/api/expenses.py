# fellowship/api/expenses.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from fellowship.api.common import ListParams, service_errors
from fellowship.api.deps import get_context, writer
from fellowship.db import get_db
from fellowship.schemas.common import Page
from fellowship.schemas.expense import ExpenseCreate, ExpenseOut, ExpenseUpdate
from fellowship.services import expenses as svc
from fellowship.services.context import RequestContext

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.get("/", response_model=Page[ExpenseOut])
def list_expenses(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.list_expenses(
            db,
            ctx,
            filters=params.filters,
            search=params.search,
            amount=params.amount,
            page=params.page,
            sort_key=params.sort_key,
            sort_direction=params.sort_direction,
        )


@router.post("/", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: ExpenseCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.create_expense(db, ctx, payload)


@router.get("/{expense_id}", response_model=ExpenseOut)
def get_expense(
    expense_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.get_expense(db, ctx, expense_id)


@router.patch("/{expense_id}", response_model=ExpenseOut)
def update_expense(
    expense_id: uuid.UUID,
    payload: ExpenseUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.update_expense(db, ctx, expense_id, payload)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        svc.delete_expense(db, ctx, expense_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
