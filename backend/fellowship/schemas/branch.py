from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fellowship.schemas.common import reject_nulls


class BranchCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    location: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    contact: Optional[str] = Field(default=None, max_length=100)


class BranchUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    location: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    contact: Optional[str] = Field(default=None, max_length=100)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def _check_required(self):
        return reject_nulls(self, "name", "is_active")


class BranchOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    name: str
    location: Optional[str] = None
    description: Optional[str] = None
    contact: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class UserBranchAssign(BaseModel):
    user_id: uuid.UUID


class UserBranchOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    branch_id: uuid.UUID
    organization_id: uuid.UUID
    assigned_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
