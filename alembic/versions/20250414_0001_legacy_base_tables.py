"""legacy base tables

Revision ID: 20250414_0001
Revises:
Create Date: 2025-04-14 09:12:03.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20250414_0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade():
    # ตารางชุดแรกตามระบบเดิม: SalesOrders ยังเก็บ material/qty/rate ในหัวบิล
    op.create_table(
        "Materials",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("uom", sa.String(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_Materials")),
    )

    op.create_table(
        "Customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("gst_no", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_Customers")),
    )

    op.create_table(
        "Vendors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("contact", sa.String(), nullable=True),
        sa.Column("gst_no", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_Vendors")),
    )

    # material_id ยังไม่มี FK (มาเพิ่มทีหลังใน sync foreign keys)
    op.create_table(
        "CrusherRuns",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("material_id", sa.Integer(), nullable=True),
        sa.Column("produced_qty", sa.Float(), nullable=False),
        sa.Column("dispatched_qty", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("run_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_CrusherRuns")),
    )
    op.create_index(op.f("ix_CrusherRuns_material_id"), "CrusherRuns", ["material_id"])

    op.create_table(
        "SalesOrders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("material_id", sa.Integer(), nullable=True),
        sa.Column("qty", sa.Float(), nullable=True),
        sa.Column("rate", sa.Float(), nullable=True),
        sa.Column("vehicle_no", sa.String(), nullable=True),
        sa.Column("order_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["customer_id"], ["Customers.id"],
            name=op.f("fk_SalesOrders_customer_id_Customers"), ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_SalesOrders")),
    )
    op.create_index(op.f("ix_SalesOrders_customer_id"), "SalesOrders", ["customer_id"])

    op.create_table(
        "PurchaseOrders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("vendor_id", sa.Integer(), nullable=False),
        sa.Column("material_id", sa.Integer(), nullable=False),
        sa.Column("qty", sa.Float(), nullable=False),
        sa.Column("rate", sa.Float(), nullable=False),
        sa.Column("order_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["vendor_id"], ["Vendors.id"],
            name=op.f("fk_PurchaseOrders_vendor_id_Vendors"), ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["material_id"], ["Materials.id"],
            name=op.f("fk_PurchaseOrders_material_id_Materials"), ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_PurchaseOrders")),
    )
    op.create_index(op.f("ix_PurchaseOrders_vendor_id"), "PurchaseOrders", ["vendor_id"])
    op.create_index(op.f("ix_PurchaseOrders_material_id"), "PurchaseOrders", ["material_id"])


def downgrade():
    op.drop_index(op.f("ix_PurchaseOrders_material_id"), table_name="PurchaseOrders")
    op.drop_index(op.f("ix_PurchaseOrders_vendor_id"), table_name="PurchaseOrders")
    op.drop_table("PurchaseOrders")
    op.drop_index(op.f("ix_SalesOrders_customer_id"), table_name="SalesOrders")
    op.drop_table("SalesOrders")
    op.drop_index(op.f("ix_CrusherRuns_material_id"), table_name="CrusherRuns")
    op.drop_table("CrusherRuns")
    op.drop_table("Vendors")
    op.drop_table("Customers")
    op.drop_table("Materials")
