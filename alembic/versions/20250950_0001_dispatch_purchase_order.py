"""dispatches: purchase_order_id (set null)

Revision ID: 20250950_0001
Revises: 20250940_0001
Create Date: 2025-10-06 14:09:51.528830

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from utils.migration_ops import batch_kwargs
from utils.schema_inspect import find_fk, has_column


# revision identifiers, used by Alembic.
revision: str = '20250950_0001'
down_revision: Union[str, Sequence[str], None] = '20250940_0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

FK_NAME = "fk_Dispatches_purchase_order_id_PurchaseOrders"
IX_NAME = "ix_Dispatches_purchase_order_id"


def upgrade():
    bind = op.get_bind()
    if has_column(bind, "Dispatches", "purchase_order_id"):
        return
    with op.batch_alter_table("Dispatches", **batch_kwargs(bind)) as batch:
        batch.add_column(sa.Column("purchase_order_id", sa.Integer(), nullable=True))
        batch.create_foreign_key(
            op.f(FK_NAME),
            "PurchaseOrders",
            ["purchase_order_id"],
            ["id"],
            ondelete="SET NULL",
            onupdate="CASCADE",
        )
    op.create_index(op.f(IX_NAME), "Dispatches", ["purchase_order_id"])


def downgrade():
    bind = op.get_bind()
    op.drop_index(op.f(IX_NAME), table_name="Dispatches")
    with op.batch_alter_table("Dispatches", **batch_kwargs(bind)) as batch:
        if find_fk(bind, "Dispatches", ["purchase_order_id"], "PurchaseOrders"):
            batch.drop_constraint(op.f(FK_NAME), type_="foreignkey")
        batch.drop_column("purchase_order_id")
