"""Track reminder and overdue alerts per assignment

Revision ID: 20250318_140000
Revises: 20250301_090000
Create Date: 2025-03-18 14:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20250318_140000"
down_revision: Union[str, None] = "20250301_090000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("shift_assignments") as batch:
        batch.add_column(sa.Column("reminder_sent_at", sa.DateTime(), nullable=True))
        batch.add_column(sa.Column("overdue_alerted_at", sa.DateTime(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("shift_assignments") as batch:
        batch.drop_column("overdue_alerted_at")
        batch.drop_column("reminder_sent_at")
