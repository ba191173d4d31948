from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from fellowship.models.income import PaymentMethod, SourceType
from fellowship.models.pledge import PledgeFrequency, PledgeStatus
from fellowship.schemas.common import reject_nulls
from fellowship.schemas.income import Amount


class PledgeCreate(BaseModel):
    source_type: SourceType = SourceType.member
    source: Optional[str] = Field(default=None, max_length=200)
    member_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    tag_item_id: Optional[uuid.UUID] = None
    pledge_amount: Amount
    pledge_type: str = Field(..., min_length=1, max_length=50)
    campaign_name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    start_date: dt.date
    end_date: Optional[dt.date] = None
    payment_frequency: PledgeFrequency = PledgeFrequency.one_time
    notes: Optional[str] = None
    branch_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _check_dates(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class PledgeUpdate(BaseModel):
    """Partial update. Paid/remaining totals are derived from payments and cannot be set."""
    source_type: Optional[SourceType] = None
    source: Optional[str] = Field(default=None, max_length=200)
    member_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    tag_item_id: Optional[uuid.UUID] = None
    pledge_amount: Optional[Amount] = None
    pledge_type: Optional[str] = Field(default=None, min_length=1, max_length=50)
    campaign_name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    payment_frequency: Optional[PledgeFrequency] = None
    status: Optional[PledgeStatus] = None
    notes: Optional[str] = None
    branch_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _check_required(self):
        return reject_nulls(
            self, "pledge_amount", "pledge_type", "start_date", "payment_frequency", "status"
        )


class PledgeOut(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    branch_id: Optional[uuid.UUID] = None
    branch_name: Optional[str] = None
    source_type: Optional[str] = None
    source: Optional[str] = None
    member_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    tag_item_id: Optional[uuid.UUID] = None
    pledge_amount: float
    amount_paid: float
    amount_remaining: float
    pledge_type: str
    campaign_name: Optional[str] = None
    description: Optional[str] = None
    start_date: dt.date
    end_date: Optional[dt.date] = None
    payment_frequency: str
    status: str
    notes: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    member_name: str = ""
    group_name: str = ""
    tag_item_name: str = ""
    contributor_name: str = ""


class PaymentCreate(BaseModel):
    amount: Amount
    payment_date: dt.date
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None
    branch_id: Optional[uuid.UUID] = None


class PaymentUpdate(BaseModel):
    amount: Optional[Amount] = None
    payment_date: Optional[dt.date] = None
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None
    branch_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _check_required(self):
        return reject_nulls(self, "amount", "payment_date")


class PaymentOut(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    pledge_id: uuid.UUID
    branch_id: Optional[uuid.UUID] = None
    branch_name: Optional[str] = None
    amount: float
    payment_date: dt.date
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    member_name: str = ""
    group_name: str = ""
    tag_item_name: str = ""
    contributor_name: str = ""
    pledge_label: str = ""
