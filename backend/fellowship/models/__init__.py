# fellowship/models/__init__.py
"""
Central model registry.

Import this once at startup (e.g., in main.py) so SQLAlchemy sees all mapped
classes before relationships are configured and metadata is created.
"""
from fellowship.db import Base  # re-export Base

from .organization import Organization, Profile, UserOrganization, UserRole  # noqa: F401
from .branch import Branch, UserBranch  # noqa: F401
from .member import Member, MemberTagItem, TagItem  # noqa: F401
from .group import Group, GroupMember, GroupType  # noqa: F401
from .attendance import AttendanceOccasion, AttendanceRecord, AttendanceSession, MarkedByMode  # noqa: F401
from .income import Income, IncomeType, PaymentMethod, SourceType  # noqa: F401
from .expense import Expense  # noqa: F401
from .pledge import PledgeFrequency, PledgePayment, PledgeRecord, PledgeStatus  # noqa: F401
