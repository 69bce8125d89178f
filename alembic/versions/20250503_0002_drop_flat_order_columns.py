"""sales order items (phase 2: drop flat columns from SalesOrders)

Revision ID: 20250503_0002
Revises: 20250503_0001
Create Date: 2025-05-03 16:03:22.417690

"""
from typing import Sequence, Union

from alembic import context, op
import sqlalchemy as sa

from services.legacy_backfill import copy_sales_order_lines, orders_missing_lines, restore_flat_order_columns
from utils.db_errors import MigrationPreconditionError
from utils.migration_ops import backfill_policy
from utils.schema_inspect import column_names


# revision identifiers, used by Alembic.
revision: str = '20250503_0002'
down_revision: Union[str, Sequence[str], None] = '20250503_0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

FLAT_COLUMNS = ("material_id", "qty", "rate")


def upgrade():
    bind = op.get_bind()
    existing = set(column_names(bind, "SalesOrders"))
    todo = [c for c in FLAT_COLUMNS if c in existing]
    if not todo:
        return

    # phase 1 อาจ copy ไม่สำเร็จ (best_effort): ลองอีกรอบ แล้วห้าม drop ถ้ายังมีบิลที่ไม่มี item
    copy_sales_order_lines(bind, policy=backfill_policy(context))
    leftover = orders_missing_lines(bind)
    if leftover:
        raise MigrationPreconditionError(
            f"SalesOrders ids {leftover} still have material/qty/rate but no SalesOrderItems; "
            "fix those rows and rerun the upgrade before the flat columns are dropped"
        )

    with op.batch_alter_table("SalesOrders") as batch:
        for name in todo:
            batch.drop_column(name)


def downgrade():
    bind = op.get_bind()
    existing = set(column_names(bind, "SalesOrders"))
    with op.batch_alter_table("SalesOrders") as batch:
        if "material_id" not in existing:
            batch.add_column(sa.Column("material_id", sa.Integer(), nullable=True))
        if "qty" not in existing:
            batch.add_column(sa.Column("qty", sa.Float(), nullable=True))
        if "rate" not in existing:
            batch.add_column(sa.Column("rate", sa.Float(), nullable=True))
    # เติมกลับจากรายการแรกของแต่ละบิล (บิลหลายรายการจะเหลือแค่รายการแรก)
    restore_flat_order_columns(bind)
