from __future__ import annotations

import uuid
import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, condecimal, model_validator

from fellowship.models.income import IncomeType, PaymentMethod, SourceType
from fellowship.schemas.common import reject_nulls

# Decimal type aligned with DB (NUMERIC(14,2))
Amount = condecimal(max_digits=14, decimal_places=2, gt=0)


class IncomeBase(BaseModel):
    amount: Amount
    date: dt.date
    income_type: IncomeType = IncomeType.general_income
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    notes: Optional[str] = None
    occasion_name: Optional[str] = Field(default=None, max_length=200)
    attendance_occasion_id: Optional[uuid.UUID] = None
    attendance_session_id: Optional[uuid.UUID] = None
    source_type: Optional[SourceType] = None
    source: Optional[str] = Field(default=None, max_length=200)
    member_id: Optional[uuid.UUID] = None
    member_name: Optional[str] = Field(default=None, max_length=200)
    group_id: Optional[uuid.UUID] = None
    tag_item_id: Optional[uuid.UUID] = None
    payment_method: Optional[PaymentMethod] = None
    receipt_number: Optional[str] = Field(default=None, max_length=100)
    envelope_number: Optional[str] = Field(default=None, max_length=50)
    tax_deductible: bool = False
    receipt_issued: bool = False
    branch_id: Optional[uuid.UUID] = None


class IncomeCreate(IncomeBase):
    """Payload for recording income."""
    pass


class IncomeUpdate(BaseModel):
    """Partial update; send only fields to change."""
    amount: Optional[Amount] = None
    date: Optional[dt.date] = None
    income_type: Optional[IncomeType] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    notes: Optional[str] = None
    occasion_name: Optional[str] = Field(default=None, max_length=200)
    attendance_occasion_id: Optional[uuid.UUID] = None
    attendance_session_id: Optional[uuid.UUID] = None
    source_type: Optional[SourceType] = None
    source: Optional[str] = Field(default=None, max_length=200)
    member_id: Optional[uuid.UUID] = None
    member_name: Optional[str] = Field(default=None, max_length=200)
    group_id: Optional[uuid.UUID] = None
    tag_item_id: Optional[uuid.UUID] = None
    payment_method: Optional[PaymentMethod] = None
    receipt_number: Optional[str] = Field(default=None, max_length=100)
    envelope_number: Optional[str] = Field(default=None, max_length=50)
    tax_deductible: Optional[bool] = None
    receipt_issued: Optional[bool] = None
    branch_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _check_required(self):
        return reject_nulls(
            self, "amount", "date", "income_type", "category", "tax_deductible", "receipt_issued"
        )


class IncomeOut(BaseModel):
    """Income row with derived contributor fields."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    branch_id: Optional[uuid.UUID] = None
    branch_name: Optional[str] = None
    amount: float
    date: dt.date
    income_type: str
    category: str
    description: Optional[str] = None
    notes: Optional[str] = None
    occasion_name: Optional[str] = None
    attendance_occasion_id: Optional[uuid.UUID] = None
    attendance_session_id: Optional[uuid.UUID] = None
    source_type: Optional[str] = None
    source: Optional[str] = None
    member_id: Optional[uuid.UUID] = None
    member_name: Optional[str] = None
    group_id: Optional[uuid.UUID] = None
    tag_item_id: Optional[uuid.UUID] = None
    payment_method: Optional[str] = None
    receipt_number: Optional[str] = None
    envelope_number: Optional[str] = None
    tax_deductible: bool = False
    receipt_issued: bool = False
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    contributor_name: Optional[str] = None
    contributor_avatar_url: Optional[str] = None
    contributor_tag_color: Optional[str] = None


class ReceiptNumberRequest(BaseModel):
    pattern: Optional[str] = Field(default=None, max_length=100)
    seq: int = 0


class ReceiptNumberOut(BaseModel):
    receipt_number: str
