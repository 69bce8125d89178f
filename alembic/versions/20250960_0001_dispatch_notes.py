"""dispatches: notes

Revision ID: 20250960_0001
Revises: 20250950_0001
Create Date: 2025-10-09 08:30:14.662957

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from utils.schema_inspect import has_column


# revision identifiers, used by Alembic.
revision: str = '20250960_0001'
down_revision: Union[str, Sequence[str], None] = '20250950_0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    if has_column(op.get_bind(), "Dispatches", "notes"):
        return
    with op.batch_alter_table("Dispatches") as batch:
        batch.add_column(sa.Column("notes", sa.Text(), nullable=True))


def downgrade():
    with op.batch_alter_table("Dispatches") as batch:
        batch.drop_column("notes")
