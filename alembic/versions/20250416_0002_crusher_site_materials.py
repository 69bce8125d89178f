"""crusher site materials link table

Revision ID: 20250416_0002
Revises: 20250416_0001
Create Date: 2025-04-16 10:58:12.649021

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from utils.schema_inspect import has_table


# revision identifiers, used by Alembic.
revision: str = '20250416_0002'
down_revision: Union[str, Sequence[str], None] = '20250416_0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    if has_table(op.get_bind(), "CrusherSiteMaterials"):
        return
    # ลบ site หรือ material -> ลบแค่แถว link
    op.create_table(
        "CrusherSiteMaterials",
        sa.Column("crusher_site_id", sa.Integer(), nullable=False),
        sa.Column("material_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(
            ["crusher_site_id"], ["CrusherSites.id"],
            name=op.f("fk_CrusherSiteMaterials_crusher_site_id_CrusherSites"), ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["material_id"], ["Materials.id"],
            name=op.f("fk_CrusherSiteMaterials_material_id_Materials"), ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("crusher_site_id", "material_id", name=op.f("pk_CrusherSiteMaterials")),
    )


def downgrade():
    op.drop_table("CrusherSiteMaterials")
