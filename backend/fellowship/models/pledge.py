# fellowship/models/pledge.py
from __future__ import annotations

import enum
import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fellowship.db import Base


class PledgeStatus(str, enum.Enum):
    active = "active"
    fulfilled = "fulfilled"
    cancelled = "cancelled"
    overdue = "overdue"


class PledgeFrequency(str, enum.Enum):
    one_time = "one_time"
    weekly = "weekly"
    monthly = "monthly"
    quarterly = "quarterly"
    annually = "annually"


class PledgeRecord(Base):
    __tablename__ = "pledge_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id = Column(Uuid, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)

    source_type = Column(String(20), nullable=True)
    source = Column(String(200), nullable=True)
    member_id = Column(Uuid, ForeignKey("members.id", ondelete="SET NULL"), nullable=True, index=True)
    group_id = Column(Uuid, ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True)
    tag_item_id = Column(Uuid, ForeignKey("tag_items.id", ondelete="SET NULL"), nullable=True, index=True)

    pledge_amount = Column(Numeric(14, 2), nullable=False)
    amount_paid = Column(Numeric(14, 2), nullable=False, default=0)
    amount_remaining = Column(Numeric(14, 2), nullable=False, default=0)
    pledge_type = Column(String(50), nullable=False)
    campaign_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=True)
    payment_frequency = Column(String(20), nullable=False, default=PledgeFrequency.one_time.value)
    status = Column(String(20), nullable=False, default=PledgeStatus.active.value)
    notes = Column(Text, nullable=True)

    is_deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(Uuid, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    member = relationship("Member")
    group = relationship("Group")
    tag_item = relationship("TagItem")
    branch = relationship("Branch")
    payments = relationship("PledgePayment", back_populates="pledge")


class PledgePayment(Base):
    __tablename__ = "pledge_payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id = Column(Uuid, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)
    pledge_id = Column(Uuid, ForeignKey("pledge_records.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Numeric(14, 2), nullable=False)
    payment_date = Column(Date, nullable=False, index=True)
    payment_method = Column(String(30), nullable=True)
    notes = Column(Text, nullable=True)

    is_deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(Uuid, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    pledge = relationship("PledgeRecord", back_populates="payments")
    branch = relationship("Branch")
