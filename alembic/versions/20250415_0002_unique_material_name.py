"""deduplicate and constrain Materials.name

Revision ID: 20250415_0002
Revises: 20250415_0001
Create Date: 2025-04-15 11:05:44.073512

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from services.legacy_backfill import DEFAULT_UOM, merge_duplicate_materials
from utils.schema_inspect import has_unique


# revision identifiers, used by Alembic.
revision: str = '20250415_0002'
down_revision: Union[str, Sequence[str], None] = '20250415_0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    bind = op.get_bind()

    # 1) รวมแถวชื่อซ้ำ (id ต่ำสุดอยู่ต่อ) ก่อน ไม่งั้น unique จะ fail
    merge_duplicate_materials(bind)

    # 2) unique(name) + uom ไม่บังคับ
    with op.batch_alter_table("Materials") as batch:
        if not has_unique(bind, "Materials", ["name"]):
            batch.create_unique_constraint(op.f("uq_Materials_name"), ["name"])
        batch.alter_column("uom", existing_type=sa.String(), nullable=True)


def downgrade():
    bind = op.get_bind()
    # แถวที่ลบไปตอนรวมไม่ได้กลับมา
    op.execute(
        sa.text('UPDATE "Materials" SET uom = :uom WHERE uom IS NULL').bindparams(uom=DEFAULT_UOM)
    )
    with op.batch_alter_table("Materials") as batch:
        batch.alter_column("uom", existing_type=sa.String(), nullable=False)
        if has_unique(bind, "Materials", ["name"]):
            batch.drop_constraint(op.f("uq_Materials_name"), type_="unique")
