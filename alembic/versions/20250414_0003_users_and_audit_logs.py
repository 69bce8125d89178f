"""users and audit logs

Revision ID: 20250414_0003
Revises: 20250414_0002
Create Date: 2025-04-14 18:02:51.304117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from utils.migration_ops import create_enum, drop_enum, enum_type, in_list_sql


# revision identifiers, used by Alembic.
revision: str = '20250414_0003'
down_revision: Union[str, Sequence[str], None] = '20250414_0002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLES = ["SUPER_ADMIN", "ADMIN", "STAFF"]
ACTIONS = ["CREATE", "UPDATE", "DELETE", "LOGIN", "LOGOUT"]


def upgrade():
    bind = op.get_bind()
    create_enum(bind, "user_role", ROLES)
    create_enum(bind, "audit_action", ACTIONS)

    op.create_table(
        "Users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("role", enum_type(bind, "user_role", ROLES), server_default="STAFF", nullable=False),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(in_list_sql("role", ROLES), name=op.f("ck_Users_role")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_Users")),
        sa.UniqueConstraint("email", name=op.f("uq_Users_email")),
    )

    op.create_table(
        "UserAuditLogs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("action", enum_type(bind, "audit_action", ACTIONS), nullable=False),
        sa.Column("entity_type", sa.String(), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("changes", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(in_list_sql("action", ACTIONS), name=op.f("ck_UserAuditLogs_action")),
        sa.ForeignKeyConstraint(
            ["user_id"], ["Users.id"],
            name=op.f("fk_UserAuditLogs_user_id_Users"), ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_UserAuditLogs")),
    )
    op.create_index(op.f("ix_UserAuditLogs_user_id"), "UserAuditLogs", ["user_id"])


def downgrade():
    bind = op.get_bind()
    op.drop_index(op.f("ix_UserAuditLogs_user_id"), table_name="UserAuditLogs")
    op.drop_table("UserAuditLogs")
    op.drop_table("Users")
    drop_enum(bind, "audit_action")
    drop_enum(bind, "user_role")
