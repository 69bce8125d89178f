# utils/migration_ops.py
"""
ตัวช่วยที่ migration ใช้ร่วมกัน (enum type, batch options, CHECK sql, policy)
"""
import os
from typing import Iterable, List

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from config import settings


def is_pg(bind) -> bool:
    return bind.dialect.name == "postgresql"


def is_sqlite(bind) -> bool:
    return bind.dialect.name == "sqlite"


def enum_type(bind, name: str, values: List[str]):
    """
    PostgreSQL: named ENUM (สร้างแยกด้วย create_enum ไม่ให้ create_table สร้างซ้ำ)
    อื่น ๆ: VARCHAR + CHECK ที่ประกาศเอง
    """
    if is_pg(bind):
        return postgresql.ENUM(*values, name=name, create_type=False)
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=False)


def create_enum(bind, name: str, values: List[str]) -> None:
    if is_pg(bind):
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)


def drop_enum(bind, name: str) -> None:
    if is_pg(bind):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)


def in_list_sql(column: str, values: Iterable[str]) -> str:
    allowed = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({allowed})"


def batch_kwargs(bind) -> dict:
    # SQLite ALTER ADD COLUMN ใส่ FK/CHECK ไม่ได้ ต้อง rebuild ตาราง
    return {"recreate": "always"} if is_sqlite(bind) else {}


def backfill_policy(context) -> str:
    """
    ลำดับ: config.attributes["backfill_policy"] (tests / manage.py)
    > -x backfill_policy=... > BACKFILL_POLICY env > Settings
    """
    policy = context.config.attributes.get("backfill_policy")
    if not policy:
        policy = context.get_x_argument(as_dictionary=True).get("backfill_policy")
    if not policy:
        policy = os.getenv("BACKFILL_POLICY") or settings.BACKFILL_POLICY
    return policy
