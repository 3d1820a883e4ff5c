"""shift engine schema

Revision ID: 20250301_090000
Revises:
Create Date: 2025-03-01 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20250301_090000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


worker_status_enum = sa.Enum("active", "inactive", name="worker_status")
shift_status_enum = sa.Enum("scheduled", "in_progress", "completed", name="shift_status")
assignment_status_enum = sa.Enum("assigned", "checked_in", "checked_out", "no_show", name="assignment_status")


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "sites",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "workers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("status", worker_status_enum, nullable=False, server_default="active"),
        sa.Column("has_weapon_license", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("weapon_license_expiry", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "shifts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id"), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("required_workers", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("requires_weapon", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("requires_vehicle", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", shift_status_enum, nullable=False, server_default="scheduled"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("start_time < end_time", name="ck_shift_time_order"),
        sa.CheckConstraint("required_workers >= 1", name="ck_shift_required_workers"),
    )
    op.create_index("ix_shifts_date", "shifts", ["date"])

    op.create_table(
        "shift_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("shift_id", sa.Integer(), sa.ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("worker_id", sa.Integer(), sa.ForeignKey("workers.id"), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="guard"),
        sa.Column("status", assignment_status_enum, nullable=False, server_default="assigned"),
        sa.Column("check_in_time", sa.DateTime(), nullable=True),
        sa.Column("check_out_time", sa.DateTime(), nullable=True),
        sa.Column("check_in_latitude", sa.Float(), nullable=True),
        sa.Column("check_in_longitude", sa.Float(), nullable=True),
        sa.Column("check_out_latitude", sa.Float(), nullable=True),
        sa.Column("check_out_longitude", sa.Float(), nullable=True),
        sa.Column("actual_hours", sa.Numeric(5, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("shift_id", "worker_id", name="uq_shift_assignment_worker"),
    )
    op.create_index("ix_shift_assignments_shift_id", "shift_assignments", ["shift_id"])
    op.create_index("ix_shift_assignments_worker_id", "shift_assignments", ["worker_id"])


def downgrade() -> None:
    op.drop_index("ix_shift_assignments_worker_id", table_name="shift_assignments")
    op.drop_index("ix_shift_assignments_shift_id", table_name="shift_assignments")
    op.drop_table("shift_assignments")
    op.drop_index("ix_shifts_date", table_name="shifts")
    op.drop_table("shifts")
    op.drop_table("workers")
    op.drop_table("sites")
    op.drop_table("customers")

    bind = op.get_bind()
    assignment_status_enum.drop(bind, checkfirst=True)
    shift_status_enum.drop(bind, checkfirst=True)
    worker_status_enum.drop(bind, checkfirst=True)
