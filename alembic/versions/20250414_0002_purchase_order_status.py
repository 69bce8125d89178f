"""purchase order status enum

Revision ID: 20250414_0002
Revises: 20250414_0001
Create Date: 2025-04-14 15:40:27.550913

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from utils.migration_ops import (
    batch_kwargs, create_enum, drop_enum, enum_type, in_list_sql, is_pg,
)
from utils.schema_inspect import has_check, has_column


# revision identifiers, used by Alembic.
revision: str = '20250414_0002'
down_revision: Union[str, Sequence[str], None] = '20250414_0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TYPE_NAME = "purchase_order_status"
VALUES = ["PENDING", "RECEIVED", "PARTIAL"]
CHECK_NAME = "ck_PurchaseOrders_status"


def upgrade():
    bind = op.get_bind()

    # 1) type ก่อน (PostgreSQL เท่านั้น)
    create_enum(bind, TYPE_NAME, VALUES)

    if not has_column(bind, "PurchaseOrders", "status"):
        # 2a) ยังไม่มีคอลัมน์: เพิ่มพร้อม default PENDING (แถวเดิมได้ PENDING)
        with op.batch_alter_table("PurchaseOrders", **batch_kwargs(bind)) as batch:
            batch.add_column(
                sa.Column(
                    "status",
                    enum_type(bind, TYPE_NAME, VALUES),
                    nullable=False,
                    server_default="PENDING",
                )
            )
            batch.create_check_constraint(op.f(CHECK_NAME), in_list_sql("status", VALUES))
        return

    # 2b) มีคอลัมน์ varchar อยู่แล้ว (DB ที่แก้มือ): เติม NULL แล้วแปลง type
    op.execute(sa.text('UPDATE "PurchaseOrders" SET status = \'PENDING\' WHERE status IS NULL'))
    if is_pg(bind):
        op.execute(sa.text('ALTER TABLE "PurchaseOrders" ALTER COLUMN status DROP DEFAULT'))
        op.execute(
            sa.text(
                f'ALTER TABLE "PurchaseOrders" ALTER COLUMN status TYPE {TYPE_NAME} '
                f"USING status::{TYPE_NAME}"
            )
        )
    with op.batch_alter_table("PurchaseOrders", **batch_kwargs(bind)) as batch:
        batch.alter_column(
            "status",
            existing_type=enum_type(bind, TYPE_NAME, VALUES),
            nullable=False,
            server_default="PENDING",
        )
        if not has_check(bind, "PurchaseOrders", CHECK_NAME):
            batch.create_check_constraint(op.f(CHECK_NAME), in_list_sql("status", VALUES))


def downgrade():
    bind = op.get_bind()
    with op.batch_alter_table("PurchaseOrders", **batch_kwargs(bind)) as batch:
        if has_check(bind, "PurchaseOrders", CHECK_NAME):
            batch.drop_constraint(op.f(CHECK_NAME), type_="check")
        batch.drop_column("status")
    drop_enum(bind, TYPE_NAME)
