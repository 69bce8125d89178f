"""crusher runs: status enum, material_id NOT NULL

Revision ID: 20250970_0001
Revises: 20250960_0001
Create Date: 2025-10-14 10:12:37.208114

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from services.legacy_backfill import backfill_run_status, require_run_materials
from utils.migration_ops import batch_kwargs, create_enum, drop_enum, enum_type, in_list_sql
from utils.schema_inspect import has_check, has_column, is_nullable


# revision identifiers, used by Alembic.
revision: str = '20250970_0001'
down_revision: Union[str, Sequence[str], None] = '20250960_0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TYPE_NAME = "crusher_run_status"
VALUES = ["PENDING", "COMPLETED", "PARTIALLY_DISPATCHED", "FULLY_DISPATCHED"]
CHECK_NAME = "ck_CrusherRuns_status"


def upgrade():
    bind = op.get_bind()

    # 1) material_id ต้องไม่ว่างก่อนตั้ง NOT NULL
    require_run_materials(bind)

    # 2) status (แถวเดิมได้ PENDING แล้วปรับตามยอดที่ส่งไปแล้ว)
    create_enum(bind, TYPE_NAME, VALUES)
    if not has_column(bind, "CrusherRuns", "status"):
        with op.batch_alter_table("CrusherRuns", **batch_kwargs(bind)) as batch:
            batch.add_column(
                sa.Column(
                    "status",
                    enum_type(bind, TYPE_NAME, VALUES),
                    nullable=False,
                    server_default="PENDING",
                )
            )
            batch.create_check_constraint(op.f(CHECK_NAME), in_list_sql("status", VALUES))
        backfill_run_status(bind)

    # 3) NOT NULL
    if is_nullable(bind, "CrusherRuns", "material_id"):
        with op.batch_alter_table("CrusherRuns") as batch:
            batch.alter_column("material_id", existing_type=sa.Integer(), nullable=False)


def downgrade():
    bind = op.get_bind()
    with op.batch_alter_table("CrusherRuns", **batch_kwargs(bind)) as batch:
        batch.alter_column("material_id", existing_type=sa.Integer(), nullable=True)
        if has_check(bind, "CrusherRuns", CHECK_NAME):
            batch.drop_constraint(op.f(CHECK_NAME), type_="check")
        batch.drop_column("status")
    drop_enum(bind, TYPE_NAME)
