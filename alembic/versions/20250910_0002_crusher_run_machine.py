"""crusher runs: machine_id (default 1, not null, fk)

Revision ID: 20250910_0002
Revises: 20250910_0001
Create Date: 2025-09-10 09:52:10.064598

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from services.legacy_backfill import BOOTSTRAP_MACHINE_ID, backfill_machine_id
from utils.migration_ops import batch_kwargs
from utils.schema_inspect import find_fk, find_index, has_column


# revision identifiers, used by Alembic.
revision: str = '20250910_0002'
down_revision: Union[str, Sequence[str], None] = '20250910_0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

FK_NAME = "fk_CrusherRuns_machine_id_CrusherMachines"
IX_NAME = "ix_CrusherRuns_machine_id"


def upgrade():
    bind = op.get_bind()

    # 1) เพิ่มแบบ nullable ก่อน
    if not has_column(bind, "CrusherRuns", "machine_id"):
        with op.batch_alter_table("CrusherRuns") as batch:
            batch.add_column(
                sa.Column(
                    "machine_id",
                    sa.Integer(),
                    nullable=True,
                    server_default=sa.text(str(BOOTSTRAP_MACHINE_ID)),
                )
            )

    # 2) แถวเก่า -> เครื่อง bootstrap
    backfill_machine_id(bind)

    # 3) NOT NULL + FK + index
    has_fk = find_fk(bind, "CrusherRuns", ["machine_id"], "CrusherMachines") is not None
    with op.batch_alter_table("CrusherRuns", **batch_kwargs(bind)) as batch:
        batch.alter_column(
            "machine_id",
            existing_type=sa.Integer(),
            nullable=False,
            server_default=sa.text(str(BOOTSTRAP_MACHINE_ID)),
        )
        if not has_fk:
            batch.create_foreign_key(
                op.f(FK_NAME), "CrusherMachines", ["machine_id"], ["id"], ondelete="RESTRICT",
            )
    if find_index(bind, "CrusherRuns", ["machine_id"]) is None:
        op.create_index(op.f(IX_NAME), "CrusherRuns", ["machine_id"])


def downgrade():
    bind = op.get_bind()
    ix_name = find_index(bind, "CrusherRuns", ["machine_id"])
    if ix_name:
        op.drop_index(ix_name, table_name="CrusherRuns")
    with op.batch_alter_table("CrusherRuns", **batch_kwargs(bind)) as batch:
        if find_fk(bind, "CrusherRuns", ["machine_id"], "CrusherMachines"):
            batch.drop_constraint(op.f(FK_NAME), type_="foreignkey")
        batch.drop_column("machine_id")
