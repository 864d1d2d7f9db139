"""Credential store: super_admins, admins, doctors, patients

Revision ID: 001
Revises:
Create Date: 2026-10-19

Tables created:
  - super_admins   Email-keyed, password only
  - admins         Email-keyed, created_by → super_admins (SET NULL)
  - doctors        Email-keyed, approval state (pending/approved/rejected)
  - patients       Phone-keyed, password and/or OTP challenge columns

doctors.status is a VARCHAR + CHECK (non-native enum) so the same schema
runs on PostgreSQL and SQLite.

Downgrade: drops all tables in reverse dependency order.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "super_admins",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(150), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_super_admins_email", "super_admins", ["email"], unique=True)

    op.create_table(
        "admins",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(150), nullable=True),
        sa.Column(
            "created_by",
            sa.Uuid(),
            sa.ForeignKey("super_admins.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_admins_email", "admins", ["email"], unique=True)

    op.create_table(
        "doctors",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("full_name", sa.String(150), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("license_number", sa.String(100), nullable=True),
        sa.Column("specialty", sa.String(100), nullable=True),
        sa.Column("google_id", sa.String(255), nullable=True, unique=True),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "approved",
                "rejected",
                name="doctorstatus",
                native_enum=False,
                length=20,
                create_constraint=True,
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("decided_by", sa.Uuid(), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_doctors_email", "doctors", ["email"], unique=True)
    op.create_index("ix_doctors_status", "doctors", ["status"])

    op.create_table(
        "patients",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("full_name", sa.String(150), nullable=True),
        sa.Column("otp_hash", sa.String(255), nullable=True),
        sa.Column("otp_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("otp_attempts_remaining", sa.SmallInteger(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_patients_phone", "patients", ["phone"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_patients_phone", table_name="patients")
    op.drop_table("patients")
    op.drop_index("ix_doctors_status", table_name="doctors")
    op.drop_index("ix_doctors_email", table_name="doctors")
    op.drop_table("doctors")
    op.drop_index("ix_admins_email", table_name="admins")
    op.drop_table("admins")
    op.drop_index("ix_super_admins_email", table_name="super_admins")
    op.drop_table("super_admins")
