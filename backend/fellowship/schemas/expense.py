from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from fellowship.models.income import PaymentMethod
from fellowship.schemas.common import reject_nulls
from fellowship.schemas.income import Amount


class ExpenseBase(BaseModel):
    amount: Amount
    date: dt.date
    category: str = Field(..., min_length=1, max_length=100)
    purpose: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    vendor: Optional[str] = Field(default=None, max_length=200)
    receipt_number: Optional[str] = Field(default=None, max_length=100)
    payment_method: Optional[PaymentMethod] = None
    approved_by: Optional[str] = Field(default=None, max_length=200)
    approval_date: Optional[dt.date] = None
    notes: Optional[str] = None
    branch_id: Optional[uuid.UUID] = None


class ExpenseCreate(ExpenseBase):
    """Payload for creating an expense."""
    pass


class ExpenseUpdate(BaseModel):
    """Partial update; send only fields to change."""
    amount: Optional[Amount] = None
    date: Optional[dt.date] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    purpose: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    vendor: Optional[str] = Field(default=None, max_length=200)
    receipt_number: Optional[str] = Field(default=None, max_length=100)
    payment_method: Optional[PaymentMethod] = None
    approved_by: Optional[str] = Field(default=None, max_length=200)
    approval_date: Optional[dt.date] = None
    notes: Optional[str] = None
    branch_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _check_required(self):
        return reject_nulls(self, "amount", "date", "category")


class ExpenseOut(BaseModel):
    """Response model."""
    id: uuid.UUID
    organization_id: uuid.UUID
    branch_id: Optional[uuid.UUID] = None
    branch_name: Optional[str] = None
    amount: float
    date: dt.date
    category: str
    purpose: Optional[str] = None
    description: Optional[str] = None
    vendor: Optional[str] = None
    receipt_number: Optional[str] = None
    payment_method: Optional[str] = None
    approved_by: Optional[str] = None
    approval_date: Optional[dt.date] = None
    notes: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
