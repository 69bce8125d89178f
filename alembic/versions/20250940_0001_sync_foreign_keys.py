"""sync foreign keys

Revision ID: 20250940_0001
Revises: 20250930_0001
Create Date: 2025-10-02 11:38:05.117329

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from utils.migration_ops import batch_kwargs
from utils.schema_inspect import find_fk, has_table


# revision identifiers, used by Alembic.
revision: str = '20250940_0001'
down_revision: Union[str, Sequence[str], None] = '20250930_0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# (table, column, referred, ondelete)
EXPECTED = [
    ("CrusherRuns", "material_id", "Materials", "RESTRICT"),
    ("CrusherRuns", "machine_id", "CrusherMachines", "RESTRICT"),
    ("Dispatches", "crusher_run_id", "CrusherRuns", "RESTRICT"),
    ("Dispatches", "sales_order_id", "SalesOrders", "SET NULL"),
]


def _fk_name(table, column, referred):
    return f"fk_{table}_{column}_{referred}"


def _ondelete_matches(found, want):
    # RESTRICT กับ NO ACTION ให้ผลเหมือนกันตอนลบ parent
    have = found.get("ondelete") or "NO ACTION"
    if want == "RESTRICT":
        return have in ("RESTRICT", "NO ACTION")
    return have == want


def upgrade():
    bind = op.get_bind()
    for table, column, referred, ondelete in EXPECTED:
        if not has_table(bind, table):
            continue
        found = find_fk(bind, table, [column], referred)
        if found and _ondelete_matches(found, ondelete):
            continue
        with op.batch_alter_table(table, **batch_kwargs(bind)) as batch:
            if found:
                # FK เดิม action ไม่ตรง: ลบแล้วสร้างใหม่
                batch.drop_constraint(found["name"], type_="foreignkey")
            batch.create_foreign_key(
                op.f(_fk_name(table, column, referred)),
                referred,
                [column],
                ["id"],
                ondelete=ondelete,
                onupdate="CASCADE" if ondelete == "SET NULL" else None,
            )


def downgrade():
    # FK ที่ migration ก่อนหน้าสร้างไว้แล้วเป็นของ migration นั้น; ตัวที่เพิ่มที่นี่คือ runs -> materials
    bind = op.get_bind()
    if find_fk(bind, "CrusherRuns", ["material_id"], "Materials"):
        with op.batch_alter_table("CrusherRuns", **batch_kwargs(bind)) as batch:
            batch.drop_constraint(op.f(_fk_name("CrusherRuns", "material_id", "Materials")), type_="foreignkey")
