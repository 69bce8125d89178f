"""crusher sites

Revision ID: 20250416_0001
Revises: 20250415_0004
Create Date: 2025-04-16 10:20:36.207793

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from utils.schema_inspect import has_table


# revision identifiers, used by Alembic.
revision: str = '20250416_0001'
down_revision: Union[str, Sequence[str], None] = '20250415_0004'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    if has_table(op.get_bind(), "CrusherSites"):
        return
    op.create_table(
        "CrusherSites",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("owner", sa.String(), nullable=False),
        sa.Column("location", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_CrusherSites")),
    )


def downgrade():
    op.drop_table("CrusherSites")
