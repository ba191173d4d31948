"""Initial schema: organizations, branches, members, groups, attendance, finance

Every business table carries organization_id; branch_id is nullable and
means "organization-wide" when empty.
"""

from alembic import op
import sqlalchemy as sa

# --- Alembic identifiers ---
revision = "3f1a9c2e7b10"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(with_updated: bool = True):
    cols = [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    ]
    if with_updated:
        cols.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False)
        )
    return cols


def _org_fk():
    return sa.Column(
        "organization_id", sa.Uuid(), sa.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )


def _branch_fk():
    return sa.Column("branch_id", sa.Uuid(), sa.ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)


def upgrade() -> None:
    # --- tenancy ---
    op.create_table(
        "organizations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("receipt_pattern", sa.String(length=100), nullable=True),
        *_timestamps(with_updated=False),
    )
    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True, index=True),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("api_key_hash", sa.String(length=64), nullable=True, index=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(with_updated=False),
    )
    op.create_table(
        "user_organizations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
        _org_fk(),
        sa.Column("role", sa.String(length=12), nullable=False, server_default="read"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(with_updated=False),
        sa.UniqueConstraint("user_id", "organization_id", name="uq_user_organization"),
    )

    # --- branches ---
    op.create_table(
        "branches",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _org_fk(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("contact", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "user_branches",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("branch_id", sa.Uuid(), sa.ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True),
        _org_fk(),
        sa.Column("assigned_by", sa.Uuid(), nullable=True),
        *_timestamps(with_updated=False),
        sa.UniqueConstraint("user_id", "branch_id", "organization_id", name="uq_user_branch"),
    )

    # --- members & tags ---
    op.create_table(
        "members",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _org_fk(),
        _branch_fk(),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("middle_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("membership_id", sa.String(length=50), nullable=True),
        sa.Column("gender", sa.String(length=20), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("profile_image_url", sa.String(length=500), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(with_updated=False),
    )
    op.create_table(
        "tag_items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _org_fk(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_table(
        "member_tag_items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("member_id", sa.Uuid(), sa.ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("tag_item_id", sa.Uuid(), sa.ForeignKey("tag_items.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.UniqueConstraint("member_id", "tag_item_id", name="uq_member_tag_item"),
    )

    # --- groups ---
    op.create_table(
        "groups",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _org_fk(),
        _branch_fk(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(length=9), nullable=False, server_default="permanent"),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_closed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("last_updated_by", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("organization_id", "name", name="uq_group_org_name"),
    )
    op.create_table(
        "member_assigned_groups",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("group_id", sa.Uuid(), sa.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("member_id", sa.Uuid(), sa.ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("position", sa.String(length=100), nullable=True),
        sa.Column("assigned_by", sa.Uuid(), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.UniqueConstraint("group_id", "member_id", name="uq_group_member"),
    )

    # --- attendance ---
    op.create_table(
        "attendance_occasions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _org_fk(),
        _branch_fk(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("recurrence_rule", sa.Text(), nullable=True),
        sa.Column("default_duration_minutes", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "attendance_sessions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _org_fk(),
        _branch_fk(),
        sa.Column(
            "occasion_id", sa.Uuid(), sa.ForeignKey("attendance_occasions.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_open", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("allow_public_marking", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("proximity_required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("allowed_members", sa.JSON(), nullable=True),
        sa.Column("allowed_groups", sa.JSON(), nullable=True),
        sa.Column("allowed_tags", sa.JSON(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("end_time > start_time", name="ck_session_time_order"),
    )
    op.create_table(
        "attendance_records",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _org_fk(),
        sa.Column(
            "session_id", sa.Uuid(), sa.ForeignKey("attendance_sessions.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("member_id", sa.Uuid(), sa.ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("marked_by", sa.Uuid(), nullable=True),
        sa.Column("marked_by_mode", sa.String(length=20), nullable=False, server_default="manual"),
        sa.Column("marked_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("is_valid", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.UniqueConstraint("session_id", "member_id", name="uq_attendance_session_member"),
    )

    # --- finance ---
    op.create_table(
        "income",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _org_fk(),
        _branch_fk(),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False, index=True),
        sa.Column("income_type", sa.String(length=30), nullable=False, server_default="general_income"),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("occasion_name", sa.String(length=200), nullable=True),
        sa.Column(
            "attendance_occasion_id",
            sa.Uuid(),
            sa.ForeignKey("attendance_occasions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "attendance_session_id",
            sa.Uuid(),
            sa.ForeignKey("attendance_sessions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("source_type", sa.String(length=20), nullable=True),
        sa.Column("source", sa.String(length=200), nullable=True),
        sa.Column("member_id", sa.Uuid(), sa.ForeignKey("members.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("member_name", sa.String(length=200), nullable=True),
        sa.Column("group_id", sa.Uuid(), sa.ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("tag_item_id", sa.Uuid(), sa.ForeignKey("tag_items.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("payment_method", sa.String(length=30), nullable=True),
        sa.Column("receipt_number", sa.String(length=100), nullable=True),
        sa.Column("envelope_number", sa.String(length=50), nullable=True),
        sa.Column("tax_deductible", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("receipt_issued", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.Uuid(), nullable=True, index=True),
        *_timestamps(),
        # NULL receipt numbers never collide
        sa.UniqueConstraint("organization_id", "receipt_number", name="uniq_income_receipt_per_org"),
    )
    op.create_table(
        "expenses",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _org_fk(),
        _branch_fk(),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False, index=True),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("purpose", sa.String(length=200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("vendor", sa.String(length=200), nullable=True),
        sa.Column("receipt_number", sa.String(length=100), nullable=True),
        sa.Column("payment_method", sa.String(length=30), nullable=True),
        sa.Column("approved_by", sa.String(length=200), nullable=True),
        sa.Column("approval_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.Uuid(), nullable=True, index=True),
        *_timestamps(),
    )
    op.create_table(
        "pledge_records",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _org_fk(),
        _branch_fk(),
        sa.Column("source_type", sa.String(length=20), nullable=True),
        sa.Column("source", sa.String(length=200), nullable=True),
        sa.Column("member_id", sa.Uuid(), sa.ForeignKey("members.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("group_id", sa.Uuid(), sa.ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("tag_item_id", sa.Uuid(), sa.ForeignKey("tag_items.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("pledge_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("amount_paid", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("amount_remaining", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("pledge_type", sa.String(length=50), nullable=False),
        sa.Column("campaign_name", sa.String(length=200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False, index=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("payment_frequency", sa.String(length=20), nullable=False, server_default="one_time"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.Uuid(), nullable=True, index=True),
        *_timestamps(),
    )
    op.create_table(
        "pledge_payments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _org_fk(),
        _branch_fk(),
        sa.Column(
            "pledge_id", sa.Uuid(), sa.ForeignKey("pledge_records.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False, index=True),
        sa.Column("payment_method", sa.String(length=30), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.Uuid(), nullable=True, index=True),
        *_timestamps(),
    )


def downgrade() -> None:
    for table in (
        "pledge_payments",
        "pledge_records",
        "expenses",
        "income",
        "attendance_records",
        "attendance_sessions",
        "attendance_occasions",
        "member_assigned_groups",
        "groups",
        "member_tag_items",
        "tag_items",
        "members",
        "user_branches",
        "branches",
        "user_organizations",
        "profiles",
        "organizations",
    ):
        op.drop_table(table)
