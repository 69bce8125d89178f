"""sales order items (phase 1: add table and copy lines)

Revision ID: 20250503_0001
Revises: 20250416_0002
Create Date: 2025-05-03 13:26:40.812355

"""
import logging
from typing import Sequence, Union

from alembic import context, op
import sqlalchemy as sa

from services.legacy_backfill import copy_sales_order_lines
from utils.migration_ops import backfill_policy
from utils.schema_inspect import column_names, has_table


# revision identifiers, used by Alembic.
revision: str = '20250503_0001'
down_revision: Union[str, Sequence[str], None] = '20250416_0002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

logger = logging.getLogger("alembic.runtime.migration")


def upgrade():
    bind = op.get_bind()

    # 1) หัวบิล: เลขที่ challan + ที่อยู่ส่งของ
    existing = set(column_names(bind, "SalesOrders"))
    missing = [c for c in ("challan_no", "address") if c not in existing]
    if missing:
        with op.batch_alter_table("SalesOrders") as batch:
            for name in missing:
                batch.add_column(sa.Column(name, sa.String(), nullable=True))

    # 2) ตารางรายการ
    if not has_table(bind, "SalesOrderItems"):
        op.create_table(
            "SalesOrderItems",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("sales_order_id", sa.Integer(), nullable=False),
            sa.Column("material_id", sa.Integer(), nullable=False),
            sa.Column("crusher_site_id", sa.Integer(), nullable=True),
            sa.Column("qty", sa.Float(), nullable=False),
            sa.Column("rate", sa.Float(), nullable=False),
            sa.Column("uom", sa.String(), server_default="Ton", nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.ForeignKeyConstraint(
                ["sales_order_id"], ["SalesOrders.id"],
                name=op.f("fk_SalesOrderItems_sales_order_id_SalesOrders"),
                ondelete="CASCADE", onupdate="CASCADE",
            ),
            sa.ForeignKeyConstraint(
                ["material_id"], ["Materials.id"],
                name=op.f("fk_SalesOrderItems_material_id_Materials"),
                ondelete="RESTRICT", onupdate="CASCADE",
            ),
            sa.ForeignKeyConstraint(
                ["crusher_site_id"], ["CrusherSites.id"],
                name=op.f("fk_SalesOrderItems_crusher_site_id_CrusherSites"),
                ondelete="RESTRICT", onupdate="CASCADE",
            ),
            sa.PrimaryKeyConstraint("id", name=op.f("pk_SalesOrderItems")),
        )
        op.create_index(op.f("ix_SalesOrderItems_sales_order_id"), "SalesOrderItems", ["sales_order_id"])
        op.create_index(op.f("ix_SalesOrderItems_material_id"), "SalesOrderItems", ["material_id"])
        op.create_index(op.f("ix_SalesOrderItems_crusher_site_id"), "SalesOrderItems", ["crusher_site_id"])

    # 3) ก๊อปรายการจากหัวบิล (strict: พังแล้วหยุด / best_effort: log แล้วไปต่อ)
    policy = backfill_policy(context)
    copied = copy_sales_order_lines(bind, policy=policy)
    logger.info("SalesOrderItems backfill (%s): %d rows", policy, copied)


def downgrade():
    bind = op.get_bind()
    if has_table(bind, "SalesOrderItems"):
        op.drop_index(op.f("ix_SalesOrderItems_crusher_site_id"), table_name="SalesOrderItems")
        op.drop_index(op.f("ix_SalesOrderItems_material_id"), table_name="SalesOrderItems")
        op.drop_index(op.f("ix_SalesOrderItems_sales_order_id"), table_name="SalesOrderItems")
        op.drop_table("SalesOrderItems")
    existing = set(column_names(bind, "SalesOrders"))
    with op.batch_alter_table("SalesOrders") as batch:
        for name in ("address", "challan_no"):
            if name in existing:
                batch.drop_column(name)
