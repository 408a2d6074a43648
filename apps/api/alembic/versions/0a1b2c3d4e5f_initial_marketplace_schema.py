"""initial marketplace schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-18 12:00:00.000000

This migration creates:
1. Enum types for roles, listing, moderation, application and payment status
2. users, tuitions, applications and payments tables
3. The (tuition_id, tutor_id) unique constraint that backs duplicate-apply
   detection, and the unique stripe_session_id that backs idempotent
   settlement
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0a1b2c3d4e5f"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

user_role = postgresql.ENUM("student", "teacher", "admin", name="user_role", create_type=False)
listing_status = postgresql.ENUM(
    "open",
    "selected_pending_payment",
    "selected",
    "closed",
    name="listing_status",
    create_type=False,
)
moderation_status = postgresql.ENUM(
    "pending", "approved", "rejected", name="moderation_status", create_type=False
)
application_status = postgresql.ENUM(
    "pending",
    "selected_pending_payment",
    "selected",
    "rejected",
    name="application_status",
    create_type=False,
)
payment_status = postgresql.ENUM(
    "paid", "refund_required", name="payment_status", create_type=False
)

ENUMS = (user_role, listing_status, moderation_status, application_status, payment_status)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create enum types and the four marketplace tables."""
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("firebase_uid", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("role", user_role, nullable=False),
        # Profile
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("photo_url", sa.String(length=500), nullable=True),
        sa.Column("class_level", sa.String(length=100), nullable=True),
        sa.Column("teaching_class", sa.String(length=100), nullable=True),
        sa.Column("subject", sa.String(length=200), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_firebase_uid"), "users", ["firebase_uid"], unique=True)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "tuitions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("class_level", sa.String(length=100), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=False),
        sa.Column("budget", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("status", listing_status, nullable=False),
        sa.Column("post_status", moderation_status, nullable=False),
        # Selection
        sa.Column("salary", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("selected_application_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("selected_tutor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("selected_at", sa.DateTime(timezone=True), nullable=True),
        # Settlement
        sa.Column("payment_status", payment_status, nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["users.id"],
            name="fk_tuitions_student_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_tuitions_student_id", "tuitions", ["student_id"], unique=False)
    op.create_index(
        "ix_tuitions_status_created", "tuitions", ["status", "created_at"], unique=False
    )

    op.create_table(
        "applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("tuition_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("apply_status", application_status, nullable=False),
        sa.Column("qualification", sa.Text(), nullable=True),
        sa.Column("experience", sa.Text(), nullable=True),
        sa.Column("expected_salary", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("subject", sa.String(length=200), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("class_level", sa.String(length=100), nullable=True),
        sa.Column("payment_status", payment_status, nullable=True),
        sa.Column("selected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["tuition_id"],
            ["tuitions.id"],
            name="fk_applications_tuition_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["tutor_id"],
            ["users.id"],
            name="fk_applications_tutor_id",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("tuition_id", "tutor_id", name="uq_applications_tuition_tutor"),
    )
    op.create_index("ix_applications_tutor_id", "applications", ["tutor_id"], unique=False)
    op.create_index("ix_applications_student_id", "applications", ["student_id"], unique=False)
    op.create_index(
        "ix_applications_tuition_status",
        "applications",
        ["tuition_id", "apply_status"],
        unique=False,
    )

    # Ledger: no foreign keys so records outlive listings and accounts
    op.create_table(
        "payments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("tuition_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("tutor_amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("admin_fee", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("status", payment_status, nullable=False),
        sa.Column("stripe_session_id", sa.String(length=255), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("stripe_session_id", name="uq_payments_stripe_session_id"),
    )
    op.create_index("ix_payments_student_id", "payments", ["student_id"], unique=False)
    op.create_index("ix_payments_tutor_id", "payments", ["tutor_id"], unique=False)


def downgrade() -> None:
    """Drop all marketplace tables and enum types."""
    op.drop_index("ix_payments_tutor_id", table_name="payments")
    op.drop_index("ix_payments_student_id", table_name="payments")
    op.drop_table("payments")

    op.drop_index("ix_applications_tuition_status", table_name="applications")
    op.drop_index("ix_applications_student_id", table_name="applications")
    op.drop_index("ix_applications_tutor_id", table_name="applications")
    op.drop_table("applications")

    op.drop_index("ix_tuitions_status_created", table_name="tuitions")
    op.drop_index("ix_tuitions_student_id", table_name="tuitions")
    op.drop_table("tuitions")

    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_index(op.f("ix_users_firebase_uid"), table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
