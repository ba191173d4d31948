# fellowship/models/group.py
from __future__ import annotations

import enum
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fellowship.db import Base


class GroupType(str, enum.Enum):
    temporal = "temporal"
    permanent = "permanent"


class Group(Base):
    __tablename__ = "groups"
    __table_args__ = (UniqueConstraint("organization_id", "name", name="uq_group_org_name"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id = Column(Uuid, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(SAEnum(GroupType, name="group_type", native_enum=False), nullable=False, default=GroupType.permanent)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_closed = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Uuid, nullable=True)
    last_updated_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    members = relationship("GroupMember", back_populates="group", cascade="all, delete-orphan")


class GroupMember(Base):
    __tablename__ = "member_assigned_groups"
    __table_args__ = (UniqueConstraint("group_id", "member_id", name="uq_group_member"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    group_id = Column(Uuid, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Uuid, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(String(100), nullable=True)
    assigned_by = Column(Uuid, nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    group = relationship("Group", back_populates="members")
    member = relationship("Member")
