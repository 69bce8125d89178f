"""crusher runs: input_qty

Revision ID: 20250930_0001
Revises: 20250910_0002
Create Date: 2025-09-30 17:21:46.935081

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from services.legacy_backfill import backfill_input_qty
from utils.schema_inspect import has_column, is_nullable


# revision identifiers, used by Alembic.
revision: str = '20250930_0001'
down_revision: Union[str, Sequence[str], None] = '20250910_0002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    bind = op.get_bind()

    # 1) add (nullable)
    if not has_column(bind, "CrusherRuns", "input_qty"):
        with op.batch_alter_table("CrusherRuns") as batch:
            batch.add_column(sa.Column("input_qty", sa.Float(), nullable=True))

    # 2) แถวเก่า: input = produced ณ ตอน migrate
    backfill_input_qty(bind)

    # 3) NOT NULL
    if is_nullable(bind, "CrusherRuns", "input_qty"):
        with op.batch_alter_table("CrusherRuns") as batch:
            batch.alter_column("input_qty", existing_type=sa.Float(), nullable=False)


def downgrade():
    with op.batch_alter_table("CrusherRuns") as batch:
        batch.drop_column("input_qty")
