# utils/schema_inspect.py
"""
Probes used by migrations (idempotence guards) and by `manage.py check`.

ทุกฟังก์ชันสร้าง inspector ใหม่ทุกครั้ง เพราะ inspector cache ผลลัพธ์
และ migration เปลี่ยน schema ระหว่างทาง
"""
from typing import Dict, List, Optional

import sqlalchemy as sa
from sqlalchemy.engine import Connection


def _insp(bind):
    return sa.inspect(bind)


def has_table(bind, table: str) -> bool:
    return _insp(bind).has_table(table)


def column_names(bind, table: str) -> List[str]:
    if not has_table(bind, table):
        return []
    return [c["name"] for c in _insp(bind).get_columns(table)]


def has_column(bind, table: str, column: str) -> bool:
    return column in column_names(bind, table)


def is_nullable(bind, table: str, column: str) -> Optional[bool]:
    """None = column missing"""
    if not has_table(bind, table):
        return None
    for c in _insp(bind).get_columns(table):
        if c["name"] == column:
            return bool(c.get("nullable", True))
    return None


def find_fk(bind, table: str, constrained_cols: List[str], referred_table: str) -> Optional[dict]:
    """
    คืน FK ที่ match (table, columns, referred_table) เป็น dict
    {"name": ..., "ondelete": ...} หรือ None ถ้าไม่มี
    """
    if not has_table(bind, table):
        return None
    want = set(constrained_cols or [])
    for fk in _insp(bind).get_foreign_keys(table):
        cols = set(fk.get("constrained_columns") or [])
        if fk.get("referred_table") == referred_table and cols == want:
            options = fk.get("options") or {}
            ondelete = options.get("ondelete")
            return {
                "name": fk.get("name"),
                "ondelete": ondelete.upper() if ondelete else None,
            }
    return None


def has_unique(bind, table: str, columns: List[str]) -> bool:
    """unique constraint หรือ unique index บนชุดคอลัมน์นี้"""
    if not has_table(bind, table):
        return False
    want = list(columns)
    insp = _insp(bind)
    for uq in insp.get_unique_constraints(table):
        if list(uq.get("column_names") or []) == want:
            return True
    for ix in insp.get_indexes(table):
        if ix.get("unique") and list(ix.get("column_names") or []) == want:
            return True
    return False


def find_index(bind, table: str, columns: List[str]) -> Optional[str]:
    """ชื่อ index (unique หรือไม่ก็ได้) ที่ครอบชุดคอลัมน์นี้พอดี"""
    if not has_table(bind, table):
        return None
    want = list(columns)
    for ix in _insp(bind).get_indexes(table):
        if list(ix.get("column_names") or []) == want:
            return ix.get("name")
    return None


def has_check(bind, table: str, name: str) -> bool:
    if not has_table(bind, table):
        return False
    try:
        checks = _insp(bind).get_check_constraints(table)
    except NotImplementedError:
        return False
    return any(ck.get("name") == name for ck in checks)


def find_duplicate_groups(conn: Connection, table: str, column: str, pk: str = "id") -> Dict[str, List[int]]:
    """
    {value: [id, id, ...]} สำหรับค่าที่ซ้ำกันมากกว่า 1 แถว (id เรียงจากน้อยไปมาก)
    NULL ไม่นับว่าซ้ำ
    """
    t = sa.table(table, sa.column(pk), sa.column(column))
    rows = conn.execute(
        sa.select(t.c[pk], t.c[column])
        .where(t.c[column].is_not(None))
        .order_by(t.c[pk].asc())
    ).all()
    groups: Dict[str, List[int]] = {}
    for row_id, value in rows:
        groups.setdefault(value, []).append(row_id)
    return {v: ids for v, ids in groups.items() if len(ids) > 1}


def enum_values(bind, type_name: str) -> Optional[List[str]]:
    """labels ของ enum type ใน PostgreSQL; engine อื่นคืน None"""
    if bind.dialect.name != "postgresql":
        return None
    rows = bind.execute(
        sa.text(
            "SELECT e.enumlabel FROM pg_enum e "
            "JOIN pg_type t ON t.oid = e.enumtypid "
            "WHERE t.typname = :name ORDER BY e.enumsortorder"
        ),
        {"name": type_name},
    ).scalars().all()
    return list(rows) or None


def _count(conn: Connection, sql: str) -> int:
    return int(conn.execute(sa.text(sql)).scalar() or 0)


def integrity_report(conn: Connection, expected_tables: List[str]) -> Dict[str, object]:
    """
    สรุปปัญหาที่รู้จัก (ใช้ก่อน/หลัง migrate):
    - ตารางที่หายไป
    - ชื่อ material ซ้ำ
    - GST ซ้ำใน Customers / Vendors
    - CrusherRuns.input_qty ที่ยังเป็น NULL
    - Dispatches ที่ชี้ไป CrusherRuns ที่ไม่มีอยู่
    """
    report: Dict[str, object] = {}
    report["missing_tables"] = [t for t in expected_tables if not has_table(conn, t)]

    if has_column(conn, "Materials", "name"):
        report["duplicate_material_names"] = find_duplicate_groups(conn, "Materials", "name")
    for table in ("Customers", "Vendors"):
        if has_column(conn, table, "gst_no"):
            report[f"duplicate_gst_{table.lower()}"] = find_duplicate_groups(conn, table, "gst_no")
    if has_column(conn, "CrusherRuns", "input_qty"):
        report["null_input_qty"] = _count(
            conn, 'SELECT COUNT(*) FROM "CrusherRuns" WHERE input_qty IS NULL'
        )
    if has_table(conn, "Dispatches") and has_table(conn, "CrusherRuns"):
        report["orphan_dispatches"] = _count(
            conn,
            'SELECT COUNT(*) FROM "Dispatches" d '
            'LEFT JOIN "CrusherRuns" r ON r.id = d.crusher_run_id '
            "WHERE r.id IS NULL",
        )
    return report


def report_has_problems(report: Dict[str, object]) -> bool:
    return any(bool(v) for v in report.values())
