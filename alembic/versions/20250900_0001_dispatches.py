"""dispatches

Revision ID: 20250900_0001
Revises: 20250503_0002
Create Date: 2025-09-01 10:44:58.201736

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from utils.migration_ops import create_enum, drop_enum, enum_type, in_list_sql
from utils.schema_inspect import has_table


# revision identifiers, used by Alembic.
revision: str = '20250900_0001'
down_revision: Union[str, Sequence[str], None] = '20250503_0002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STATUSES = ["PENDING", "IN_TRANSIT", "DELIVERED"]


def upgrade():
    bind = op.get_bind()
    create_enum(bind, "delivery_status", STATUSES)
    if has_table(bind, "Dispatches"):
        return

    op.create_table(
        "Dispatches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("crusher_run_id", sa.Integer(), nullable=False),
        sa.Column("sales_order_id", sa.Integer(), nullable=True),
        sa.Column("dispatch_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("destination", sa.String(), nullable=False),
        sa.Column("vehicle_no", sa.String(), nullable=False),
        sa.Column("driver", sa.String(), nullable=True),
        sa.Column("pickup_quantity", sa.Float(), nullable=True),
        sa.Column("drop_quantity", sa.Float(), nullable=True),
        sa.Column(
            "delivery_status",
            enum_type(bind, "delivery_status", STATUSES),
            server_default="PENDING",
            nullable=False,
        ),
        sa.Column("delivery_duration", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            in_list_sql("delivery_status", STATUSES), name=op.f("ck_Dispatches_delivery_status")
        ),
        sa.ForeignKeyConstraint(
            ["crusher_run_id"], ["CrusherRuns.id"],
            name=op.f("fk_Dispatches_crusher_run_id_CrusherRuns"), ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["sales_order_id"], ["SalesOrders.id"],
            name=op.f("fk_Dispatches_sales_order_id_SalesOrders"),
            ondelete="SET NULL", onupdate="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_Dispatches")),
    )
    op.create_index(op.f("ix_Dispatches_crusher_run_id"), "Dispatches", ["crusher_run_id"])
    op.create_index(op.f("ix_Dispatches_sales_order_id"), "Dispatches", ["sales_order_id"])


def downgrade():
    bind = op.get_bind()
    op.drop_index(op.f("ix_Dispatches_sales_order_id"), table_name="Dispatches")
    op.drop_index(op.f("ix_Dispatches_crusher_run_id"), table_name="Dispatches")
    op.drop_table("Dispatches")
    drop_enum(bind, "delivery_status")
