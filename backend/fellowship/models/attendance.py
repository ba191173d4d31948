# fellowship/models/attendance.py
from __future__ import annotations

import enum
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fellowship.db import Base


class MarkedByMode(str, enum.Enum):
    email = "email"
    phone = "phone"
    membership_id = "membership_id"
    manual = "manual"


class AttendanceOccasion(Base):
    __tablename__ = "attendance_occasions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id = Column(Uuid, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    # RFC 5545 RRULE text, stored as given
    recurrence_rule = Column(Text, nullable=True)
    default_duration_minutes = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    sessions = relationship("AttendanceSession", back_populates="occasion")


class AttendanceSession(Base):
    __tablename__ = "attendance_sessions"
    __table_args__ = (CheckConstraint("end_time > start_time", name="ck_session_time_order"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id = Column(Uuid, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)
    occasion_id = Column(Uuid, ForeignKey("attendance_occasions.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)
    is_open = Column(Boolean, nullable=False, default=True)
    allow_public_marking = Column(Boolean, nullable=False, default=False)
    proximity_required = Column(Boolean, nullable=False, default=False)
    allowed_members = Column(JSON, nullable=True)
    allowed_groups = Column(JSON, nullable=True)
    allowed_tags = Column(JSON, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    occasion = relationship("AttendanceOccasion", back_populates="sessions")
    records = relationship("AttendanceRecord", back_populates="session", cascade="all, delete-orphan")


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (UniqueConstraint("session_id", "member_id", name="uq_attendance_session_member"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = Column(Uuid, ForeignKey("attendance_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Uuid, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    marked_by = Column(Uuid, nullable=True)
    marked_by_mode = Column(String(20), nullable=False, default=MarkedByMode.manual.value)
    marked_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    is_valid = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)

    session = relationship("AttendanceSession", back_populates="records")
    member = relationship("Member")
