# fellowship/models/income.py
from __future__ import annotations

import enum
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fellowship.db import Base


class IncomeType(str, enum.Enum):
    general_income = "general_income"
    contribution = "contribution"
    donation = "donation"
    pledge_payment = "pledge_payment"


class SourceType(str, enum.Enum):
    church = "church"
    member = "member"
    tag_item = "tag_item"
    group = "group"
    other = "other"


class PaymentMethod(str, enum.Enum):
    cash = "cash"
    check = "check"
    credit_card = "credit_card"
    debit_card = "debit_card"
    bank_transfer = "bank_transfer"
    mobile_payment = "mobile_payment"
    online = "online"
    other = "other"


RECEIPT_UNIQUE_CONSTRAINT = "uniq_income_receipt_per_org"


class Income(Base):
    __tablename__ = "income"
    __table_args__ = (
        UniqueConstraint("organization_id", "receipt_number", name=RECEIPT_UNIQUE_CONSTRAINT),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id = Column(Uuid, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)

    amount = Column(Numeric(14, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    income_type = Column(String(30), nullable=False, default=IncomeType.general_income.value)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    occasion_name = Column(String(200), nullable=True)
    attendance_occasion_id = Column(Uuid, ForeignKey("attendance_occasions.id", ondelete="SET NULL"), nullable=True)
    attendance_session_id = Column(Uuid, ForeignKey("attendance_sessions.id", ondelete="SET NULL"), nullable=True)

    source_type = Column(String(20), nullable=True)
    source = Column(String(200), nullable=True)
    member_id = Column(Uuid, ForeignKey("members.id", ondelete="SET NULL"), nullable=True, index=True)
    member_name = Column(String(200), nullable=True)
    group_id = Column(Uuid, ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True)
    tag_item_id = Column(Uuid, ForeignKey("tag_items.id", ondelete="SET NULL"), nullable=True, index=True)

    payment_method = Column(String(30), nullable=True)
    receipt_number = Column(String(100), nullable=True)
    envelope_number = Column(String(50), nullable=True)
    tax_deductible = Column(Boolean, nullable=False, default=False)
    receipt_issued = Column(Boolean, nullable=False, default=False)

    is_deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(Uuid, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    member = relationship("Member")
    group = relationship("Group")
    tag_item = relationship("TagItem")
    occasion = relationship("AttendanceOccasion")
    session = relationship("AttendanceSession")
    branch = relationship("Branch")
