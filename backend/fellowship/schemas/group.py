from __future__ import annotations

import datetime as dt
import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fellowship.models.group import GroupType
from fellowship.schemas.common import reject_nulls


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    type: GroupType = GroupType.permanent
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    branch_id: Optional[uuid.UUID] = None


class GroupUpdate(BaseModel):
    """Closing is a separate, one-way operation and is not settable here."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    type: Optional[GroupType] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    branch_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _check_required(self):
        return reject_nulls(self, "name", "type")


class GroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    branch_id: Optional[uuid.UUID] = None
    name: str
    description: Optional[str] = None
    type: GroupType
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    is_closed: bool
    is_active: bool
    created_by: Optional[uuid.UUID] = None
    last_updated_by: Optional[uuid.UUID] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class GroupMemberAssign(BaseModel):
    member_id: uuid.UUID
    position: Optional[str] = Field(default=None, max_length=100)


class GroupMemberBulkAssign(BaseModel):
    member_ids: List[uuid.UUID] = Field(..., min_length=1)
    position: Optional[str] = Field(default=None, max_length=100)


class GroupMemberPosition(BaseModel):
    position: Optional[str] = Field(default=None, max_length=100)


class GroupMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    group_id: uuid.UUID
    member_id: uuid.UUID
    position: Optional[str] = None
    assigned_by: Optional[uuid.UUID] = None
    assigned_at: Optional[dt.datetime] = None
