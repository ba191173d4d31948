from __future__ import annotations

import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AmountRange(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None


class DateFilter(BaseModel):
    """Either a named preset or explicit bounds; explicit bounds win."""
    type: Literal["preset", "custom"] = "custom"
    preset: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class AmountComparison(BaseModel):
    operator: Literal[">", ">=", "<", "<=", "=", "!="] = ">="
    value: Optional[float] = None


class FinanceFilter(BaseModel):
    """UI-level filter object shared by the finance lists. Every key is optional."""
    model_config = ConfigDict(extra="ignore")

    category_filter: List[str] = Field(default_factory=list)
    income_type_filter: List[str] = Field(default_factory=list)
    payment_method_filter: List[str] = Field(default_factory=list)
    status_filter: List[str] = Field(default_factory=list)
    purpose_filter: List[str] = Field(default_factory=list)
    approved_by_filter: List[str] = Field(default_factory=list)
    pledge_type_filter: List[str] = Field(default_factory=list)

    member_filter: List[uuid.UUID] = Field(default_factory=list)
    group_filter: List[uuid.UUID] = Field(default_factory=list)
    tag_item_filter: List[uuid.UUID] = Field(default_factory=list)
    attendance_occasion_filter: List[uuid.UUID] = Field(default_factory=list)
    attendance_session_filter: List[uuid.UUID] = Field(default_factory=list)
    branch_id_filter: List[uuid.UUID] = Field(default_factory=list)

    amount_range: Optional[AmountRange] = None
    amount_paid_range: Optional[AmountRange] = None
    amount_remaining_range: Optional[AmountRange] = None
    date_filter: Optional[DateFilter] = None
