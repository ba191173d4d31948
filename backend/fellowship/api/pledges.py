# fellowship/api/pledges.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from fellowship.api.common import ListParams, service_errors
from fellowship.api.deps import get_context, writer
from fellowship.db import get_db
from fellowship.schemas.common import Page
from fellowship.schemas.pledge import (
    PaymentCreate,
    PaymentOut,
    PaymentUpdate,
    PledgeCreate,
    PledgeOut,
    PledgeUpdate,
)
from fellowship.services import pledges as svc
from fellowship.services.context import RequestContext

router = APIRouter(prefix="/pledges", tags=["Pledges"])
payments_router = APIRouter(prefix="/payments", tags=["Pledges"])


# --- pledges -----------------------------------------------------------------------
@router.get("/", response_model=Page[PledgeOut])
def list_pledges(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.list_pledges(
            db,
            ctx,
            filters=params.filters,
            search=params.search,
            amount=params.amount,
            page=params.page,
            sort_key=params.sort_key,
            sort_direction=params.sort_direction,
        )


@router.post("/", response_model=PledgeOut, status_code=status.HTTP_201_CREATED)
def create_pledge(
    payload: PledgeCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.create_pledge(db, ctx, payload)


@router.get("/{pledge_id}", response_model=PledgeOut)
def get_pledge(
    pledge_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.get_pledge(db, ctx, pledge_id)


@router.patch("/{pledge_id}", response_model=PledgeOut)
def update_pledge(
    pledge_id: uuid.UUID,
    payload: PledgeUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.update_pledge(db, ctx, pledge_id, payload)


@router.delete("/{pledge_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_pledge(
    pledge_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        svc.delete_pledge(db, ctx, pledge_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- payments of one pledge --------------------------------------------------------
@router.get("/{pledge_id}/payments", response_model=Page[PaymentOut])
def list_pledge_payments(
    pledge_id: uuid.UUID,
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.list_payments(
            db,
            ctx,
            filters=params.filters,
            search=params.search,
            amount=params.amount,
            page=params.page,
            pledge_id=pledge_id,
            sort_key=params.sort_key,
            sort_direction=params.sort_direction,
        )


@router.post("/{pledge_id}/payments", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def create_payment(
    pledge_id: uuid.UUID,
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.create_payment(db, ctx, pledge_id, payload)


# --- payments across pledges -------------------------------------------------------
@payments_router.get("/", response_model=Page[PaymentOut])
def list_payments(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    with service_errors():
        return svc.list_payments(
            db,
            ctx,
            filters=params.filters,
            search=params.search,
            amount=params.amount,
            page=params.page,
            sort_key=params.sort_key,
            sort_direction=params.sort_direction,
        )


@payments_router.patch("/{payment_id}", response_model=PaymentOut)
def update_payment(
    payment_id: uuid.UUID,
    payload: PaymentUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        return svc.update_payment(db, ctx, payment_id, payload)


@payments_router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(
    payment_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(writer),
):
    with service_errors():
        svc.delete_payment(db, ctx, payment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
