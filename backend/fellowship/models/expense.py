# fellowship/models/expense.py
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fellowship.db import Base


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id = Column(Uuid, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)

    amount = Column(Numeric(14, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    category = Column(String(100), nullable=False)
    purpose = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    vendor = Column(String(200), nullable=True)
    receipt_number = Column(String(100), nullable=True)
    payment_method = Column(String(30), nullable=True)
    approved_by = Column(String(200), nullable=True)
    approval_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    is_deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(Uuid, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    branch = relationship("Branch")
