# fellowship/api/income.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from fellowship.api.common import ListParams, service_errors
from fellowship.api.deps import get_context, writer
from fellowship.db import get_db
from fellowship.models.income import IncomeType
from fellowship.models.organization import Organization
from fellowship.schemas.common import Page
from fellowship.schemas.income import (
    IncomeCreate,
    IncomeOut,
    IncomeUpdate,
    ReceiptNumberOut,
    ReceiptNumberRequest,
)
from fellowship.services import income as svc
from fellowship.services.context import RequestContext
from fellowship.services.receipts import generate_receipt_number

router = APIRouter(prefix="/income", tags=["Income"])


# --- contributions (income_type fixed to "contribution") -----------------------
@router.get("/contributions", response_model=Page[IncomeOut])
def list_contributions(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.list_income(
            db,
            ctx,
            filters=params.filters,
            search=params.search,
            amount=params.amount,
            page=params.page,
            income_type=IncomeType.contribution.value,
            sort_key=params.sort_key,
            sort_direction=params.sort_direction,
        )


@router.post("/contributions", response_model=IncomeOut, status_code=status.HTTP_201_CREATED)
def create_contribution(
    payload: IncomeCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.create_income(db, ctx, payload, income_type=IncomeType.contribution)


# --- receipt numbers -----------------------------------------------------------
@router.post("/receipt-number", response_model=ReceiptNumberOut)
def next_receipt_number(
    payload: ReceiptNumberRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    """Suggest a receipt number from the organization's pattern; nothing is reserved."""
    org = db.get(Organization, ctx.organization_id)
    pattern = payload.pattern or (org.receipt_pattern if org else None)
    number = generate_receipt_number(
        db, ctx.organization_id, org.name if org else None, pattern=pattern, seq=payload.seq
    )
    return ReceiptNumberOut(receipt_number=number)


# --- income ----------------------------------------------------------------------
@router.get("/", response_model=Page[IncomeOut])
def list_income(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.list_income(
            db,
            ctx,
            filters=params.filters,
            search=params.search,
            amount=params.amount,
            page=params.page,
            sort_key=params.sort_key,
            sort_direction=params.sort_direction,
        )


@router.post("/", response_model=IncomeOut, status_code=status.HTTP_201_CREATED)
def create_income(
    payload: IncomeCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.create_income(db, ctx, payload)


@router.get("/{income_id}", response_model=IncomeOut)
def get_income(
    income_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.get_income(db, ctx, income_id)


@router.patch("/{income_id}", response_model=IncomeOut)
def update_income(
    income_id: uuid.UUID,
    payload: IncomeUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.update_income(db, ctx, income_id, payload)


@router.delete("/{income_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_income(
    income_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        svc.delete_income(db, ctx, income_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
