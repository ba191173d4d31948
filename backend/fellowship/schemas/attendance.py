from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fellowship.models.attendance import MarkedByMode
from fellowship.schemas.common import reject_nulls


class OccasionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    recurrence_rule: Optional[str] = None
    default_duration_minutes: Optional[int] = Field(default=None, gt=0)
    branch_id: Optional[uuid.UUID] = None


class OccasionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    recurrence_rule: Optional[str] = None
    default_duration_minutes: Optional[int] = Field(default=None, gt=0)
    is_active: Optional[bool] = None
    branch_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _check_required(self):
        return reject_nulls(self, "name", "is_active")


class OccasionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    branch_id: Optional[uuid.UUID] = None
    name: str
    description: Optional[str] = None
    recurrence_rule: Optional[str] = None
    default_duration_minutes: Optional[int] = None
    is_active: bool
    created_at: Optional[datetime] = None


class SessionCreate(BaseModel):
    occasion_id: uuid.UUID
    name: Optional[str] = Field(default=None, max_length=200)
    start_time: datetime
    end_time: datetime
    is_open: bool = True
    allow_public_marking: bool = False
    proximity_required: bool = False
    allowed_members: List[uuid.UUID] = Field(default_factory=list)
    allowed_groups: List[uuid.UUID] = Field(default_factory=list)
    allowed_tags: List[uuid.UUID] = Field(default_factory=list)
    branch_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _check_window(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SessionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_open: Optional[bool] = None
    allow_public_marking: Optional[bool] = None
    proximity_required: Optional[bool] = None
    allowed_members: Optional[List[uuid.UUID]] = None
    allowed_groups: Optional[List[uuid.UUID]] = None
    allowed_tags: Optional[List[uuid.UUID]] = None
    branch_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _check_required(self):
        return reject_nulls(
            self, "start_time", "end_time", "is_open", "allow_public_marking", "proximity_required"
        )


class SessionOut(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    branch_id: Optional[uuid.UUID] = None
    occasion_id: uuid.UUID
    occasion_name: Optional[str] = None
    name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    is_open: bool
    allow_public_marking: bool
    proximity_required: bool
    allowed_members: List[uuid.UUID] = Field(default_factory=list)
    allowed_groups: List[uuid.UUID] = Field(default_factory=list)
    allowed_tags: List[uuid.UUID] = Field(default_factory=list)
    status: Literal["upcoming", "active", "closed", "past"]
    attendance_count: int = 0


class MarkAttendance(BaseModel):
    member_id: uuid.UUID
    marked_by_mode: MarkedByMode = MarkedByMode.manual
    notes: Optional[str] = None


class AttendanceRecordOut(BaseModel):
    id: uuid.UUID
    session_id: uuid.UUID
    member_id: uuid.UUID
    member_name: str = ""
    profile_image_url: Optional[str] = None
    marked_by: Optional[uuid.UUID] = None
    marked_by_mode: str
    marked_at: Optional[datetime] = None
    is_valid: bool
    notes: Optional[str] = None


class AttendanceReportQuery(BaseModel):
    """Filters for the attendance report."""
    start_date: date
    end_date: date
    occasion_ids: List[uuid.UUID] = Field(default_factory=list)
    session_ids: List[uuid.UUID] = Field(default_factory=list)
    member_ids: List[uuid.UUID] = Field(default_factory=list)
    group_ids: List[uuid.UUID] = Field(default_factory=list)
    tag_item_ids: List[uuid.UUID] = Field(default_factory=list)
    demographics: List[Literal["children", "young_adults", "adults"]] = Field(default_factory=list)
    genders: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TrendPoint(BaseModel):
    date: date
    count: int


class SessionBreakdown(BaseModel):
    session_id: uuid.UUID
    name: str
    start_time: Optional[datetime] = None
    count: int


class AttendanceSummary(BaseModel):
    total_attendance: int
    unique_members: int
    sessions_count: int
    days_span: int
    average_per_day: float
    peak_day: Optional[TrendPoint] = None
    top_session: Optional[SessionBreakdown] = None


class AttendanceReportOut(BaseModel):
    summary: AttendanceSummary
    trend: List[TrendPoint]
    sessions: List[SessionBreakdown]
    age_groups: Dict[str, int]
    genders: Dict[str, int]
