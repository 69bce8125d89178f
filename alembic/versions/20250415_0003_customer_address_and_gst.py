"""customer address fields and unique gst

Revision ID: 20250415_0003
Revises: 20250415_0002
Create Date: 2025-04-15 14:31:08.651230

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from services.legacy_backfill import normalize_gst_numbers
from utils.schema_inspect import column_names, has_unique


# revision identifiers, used by Alembic.
revision: str = '20250415_0003'
down_revision: Union[str, Sequence[str], None] = '20250415_0002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLE = "Customers"
NEW_COLUMNS = ["contact", "street", "city", "state", "pincode", "maps_link"]


def upgrade():
    bind = op.get_bind()

    # 1) คอลัมน์ที่อยู่ (เพิ่มเฉพาะที่ยังไม่มี)
    existing = set(column_names(bind, TABLE))
    missing = [c for c in NEW_COLUMNS if c not in existing]
    if missing:
        with op.batch_alter_table(TABLE) as batch:
            for name in missing:
                batch.add_column(sa.Column(name, sa.String(), nullable=True))

    # 2) GST: trim/upper, "" -> NULL; ซ้ำจริงต้องแก้มือก่อน
    normalize_gst_numbers(bind, TABLE)

    # 3) unique
    if not has_unique(bind, TABLE, ["gst_no"]):
        with op.batch_alter_table(TABLE) as batch:
            batch.create_unique_constraint(op.f("uq_Customers_gst_no"), ["gst_no"])


def downgrade():
    bind = op.get_bind()
    existing = set(column_names(bind, TABLE))
    with op.batch_alter_table(TABLE) as batch:
        if has_unique(bind, TABLE, ["gst_no"]):
            batch.drop_constraint(op.f("uq_Customers_gst_no"), type_="unique")
        for name in reversed(NEW_COLUMNS):
            if name in existing:
                batch.drop_column(name)
