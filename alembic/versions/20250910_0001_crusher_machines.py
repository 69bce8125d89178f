"""crusher machines + bootstrap machine

Revision ID: 20250910_0001
Revises: 20250900_0001
Create Date: 2025-09-10 09:15:33.780144

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from services.legacy_backfill import ensure_bootstrap_machine
from utils.migration_ops import create_enum, drop_enum, enum_type, in_list_sql
from utils.schema_inspect import has_table


# revision identifiers, used by Alembic.
revision: str = '20250910_0001'
down_revision: Union[str, Sequence[str], None] = '20250900_0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STATUSES = ["ACTIVE", "INACTIVE", "MAINTENANCE"]


def upgrade():
    bind = op.get_bind()
    create_enum(bind, "machine_status", STATUSES)

    if not has_table(bind, "CrusherMachines"):
        op.create_table(
            "CrusherMachines",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column(
                "status",
                enum_type(bind, "machine_status", STATUSES),
                server_default="ACTIVE",
                nullable=False,
            ),
            sa.Column(
                "last_maintenance_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.CheckConstraint(in_list_sql("status", STATUSES), name=op.f("ck_CrusherMachines_status")),
            sa.PrimaryKeyConstraint("id", name=op.f("pk_CrusherMachines")),
        )

    # CrusherRuns.machine_id จะ default = 1 ในขั้นถัดไป ต้องมีแถว id 1 ก่อน
    ensure_bootstrap_machine(bind)


def downgrade():
    bind = op.get_bind()
    op.drop_table("CrusherMachines")
    drop_enum(bind, "machine_status")
