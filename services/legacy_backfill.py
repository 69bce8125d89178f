# services/legacy_backfill.py
"""
Data steps that run inside migrations.

They take a plain Connection (alembic: op.get_bind()) and only use
lightweight sa.table() constructs, never the ORM models, so old
revisions keep working when models.py moves on.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List

import sqlalchemy as sa
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from utils.db_errors import MigrationPreconditionError
from utils.schema_inspect import find_duplicate_groups, has_column, has_table

logger = logging.getLogger(__name__)

POLICIES = ("strict", "best_effort")
BOOTSTRAP_MACHINE_ID = 1
BOOTSTRAP_MACHINE_NAME = "Default Crusher"
DEFAULT_UOM = "Ton"

# (table, column) ที่อ้าง Materials.id
MATERIAL_REFERENCES = [
    ("CrusherRuns", "material_id"),
    ("SalesOrders", "material_id"),
    ("PurchaseOrders", "material_id"),
    ("SalesOrderItems", "material_id"),
]


def _now():
    return datetime.now(timezone.utc)


# =========================================
# ====== Materials: dedup then unique =====
# =========================================

def plan_material_merge(rows) -> Dict[int, int]:
    """
    rows: (id, name) เรียงตาม id ASC
    คืน {duplicate_id: keeper_id}; แถวแรกของแต่ละชื่อ (id ต่ำสุด) ชนะ
    """
    keeper_by_name: Dict[str, int] = {}
    merge: Dict[int, int] = {}
    for row_id, name in rows:
        if name in keeper_by_name:
            merge[row_id] = keeper_by_name[name]
        else:
            keeper_by_name[name] = row_id
    return merge


def _repoint_site_links(conn: Connection, dup_id: int, keeper_id: int):
    # composite PK (site, material): a link the keeper already has would collide
    conn.execute(
        sa.text(
            'DELETE FROM "CrusherSiteMaterials" '
            "WHERE material_id = :dup AND crusher_site_id IN ("
            '  SELECT crusher_site_id FROM "CrusherSiteMaterials" WHERE material_id = :keeper'
            ")"
        ),
        {"dup": dup_id, "keeper": keeper_id},
    )
    conn.execute(
        sa.text('UPDATE "CrusherSiteMaterials" SET material_id = :keeper WHERE material_id = :dup'),
        {"dup": dup_id, "keeper": keeper_id},
    )


def merge_duplicate_materials(conn: Connection) -> Dict[int, int]:
    """
    1) อ่าน Materials เรียง id ASC
    2) หาแถวที่ชื่อซ้ำ (เก็บแถวแรกไว้)
    3) ย้าย reference ทั้งหมดไปที่แถวที่เก็บไว้
    4) ลบแถวซ้ำ
    ต้องทำก่อนเพิ่ม unique(name) ไม่งั้น ALTER จะ fail
    """
    materials = sa.table("Materials", sa.column("id"), sa.column("name"))
    rows = conn.execute(
        sa.select(materials.c.id, materials.c.name).order_by(materials.c.id.asc())
    ).all()
    merge = plan_material_merge(rows)
    if not merge:
        return {}

    refs = [(t, c) for t, c in MATERIAL_REFERENCES if has_column(conn, t, c)]
    has_links = has_column(conn, "CrusherSiteMaterials", "material_id")

    for dup_id, keeper_id in merge.items():
        for table, column in refs:
            t = sa.table(table, sa.column(column))
            conn.execute(
                sa.update(t).where(t.c[column] == dup_id).values({column: keeper_id})
            )
        if has_links:
            _repoint_site_links(conn, dup_id, keeper_id)

    conn.execute(sa.delete(materials).where(materials.c.id.in_(list(merge))))
    logger.info("Merged %d duplicate material rows into %d keepers", len(merge), len(set(merge.values())))
    return merge


# =========================================
# ============ GST (Customers/Vendors) ====
# =========================================

def normalize_gst_numbers(conn: Connection, table: str) -> None:
    """
    trim + upper, "" -> NULL แล้วตรวจว่ายังมี GST ซ้ำไหม
    ถ้ายังซ้ำ: หยุด migration (ไม่ลบลูกค้า/ผู้ขายทิ้งเอง)
    """
    if not has_column(conn, table, "gst_no"):
        return
    conn.execute(
        sa.text(f'UPDATE "{table}" SET gst_no = UPPER(TRIM(gst_no)) WHERE gst_no IS NOT NULL')
    )
    conn.execute(sa.text(f"UPDATE \"{table}\" SET gst_no = NULL WHERE gst_no = ''"))

    dupes = find_duplicate_groups(conn, table, "gst_no")
    if dupes:
        listing = "; ".join(f"{gst}: ids {ids}" for gst, ids in sorted(dupes.items()))
        raise MigrationPreconditionError(
            f"{table} has duplicate GST numbers, resolve them before migrating: {listing}"
        )


# =========================================
# ===== SalesOrders -> SalesOrderItems ====
# =========================================

def _pending_order_lines(conn: Connection) -> List[dict]:
    orders = sa.table(
        "SalesOrders",
        sa.column("id"),
        sa.column("material_id"),
        sa.column("qty"),
        sa.column("rate"),
    )
    items = sa.table("SalesOrderItems", sa.column("sales_order_id"))
    already = sa.select(items.c.sales_order_id)
    rows = conn.execute(
        sa.select(orders.c.id, orders.c.material_id, orders.c.qty, orders.c.rate)
        .where(orders.c.id.not_in(already))
        .order_by(orders.c.id)
    ).all()
    now = _now()
    return [
        {
            "sales_order_id": r.id,
            "material_id": r.material_id,
            "qty": r.qty,
            "rate": r.rate,
            "uom": DEFAULT_UOM,
            "created_at": now,
            "updated_at": now,
        }
        for r in rows
    ]


def copy_sales_order_lines(conn: Connection, policy: str = "strict") -> int:
    """
    ก๊อป material/qty/rate ของแต่ละ order ไปเป็น item 1 แถว
    - strict: error -> raise (migration หยุด)
    - best_effort: error -> rollback savepoint, log, คืน 0 (schema ยังเดินต่อ)
    order ที่มี item อยู่แล้วจะถูกข้าม (รันซ้ำได้)
    """
    if policy not in POLICIES:
        raise ValueError(f"unknown backfill policy {policy!r}; expected one of {POLICIES}")
    if not has_column(conn, "SalesOrders", "material_id"):
        return 0

    rows = _pending_order_lines(conn)
    if not rows:
        return 0

    items = sa.table(
        "SalesOrderItems",
        sa.column("sales_order_id"),
        sa.column("material_id"),
        sa.column("qty"),
        sa.column("rate"),
        sa.column("uom"),
        sa.column("created_at"),
        sa.column("updated_at"),
    )

    if policy == "strict":
        conn.execute(sa.insert(items), rows)
        logger.info("Copied %d sales order lines", len(rows))
        return len(rows)

    savepoint = conn.begin_nested()
    try:
        conn.execute(sa.insert(items), rows)
    except SQLAlchemyError:
        savepoint.rollback()
        logger.exception(
            "Copying %d sales order lines failed; continuing with schema changes only", len(rows)
        )
        return 0
    savepoint.commit()
    logger.info("Copied %d sales order lines", len(rows))
    return len(rows)


def orders_missing_lines(conn: Connection) -> List[int]:
    """order ที่ยังมี material/qty/rate แต่ไม่มี item เลย (ถ้า drop คอลัมน์ตอนนี้ข้อมูลหาย)"""
    if not has_column(conn, "SalesOrders", "material_id"):
        return []
    rows = conn.execute(
        sa.text(
            'SELECT o.id FROM "SalesOrders" o '
            "WHERE (o.material_id IS NOT NULL OR o.qty IS NOT NULL OR o.rate IS NOT NULL) "
            'AND NOT EXISTS (SELECT 1 FROM "SalesOrderItems" i WHERE i.sales_order_id = o.id) '
            "ORDER BY o.id"
        )
    ).all()
    return [r[0] for r in rows]


def restore_flat_order_columns(conn: Connection) -> int:
    """downgrade: เติม material_id/qty/rate กลับจาก item แรก (id ต่ำสุด) ของแต่ละ order"""
    result = conn.execute(
        sa.text(
            'UPDATE "SalesOrders" SET '
            "material_id = (SELECT i.material_id FROM \"SalesOrderItems\" i "
            '  WHERE i.sales_order_id = "SalesOrders".id ORDER BY i.id LIMIT 1), '
            "qty = (SELECT i.qty FROM \"SalesOrderItems\" i "
            '  WHERE i.sales_order_id = "SalesOrders".id ORDER BY i.id LIMIT 1), '
            "rate = (SELECT i.rate FROM \"SalesOrderItems\" i "
            '  WHERE i.sales_order_id = "SalesOrders".id ORDER BY i.id LIMIT 1)'
        )
    )
    return result.rowcount or 0


# =========================================
# ============== CrusherRuns ==============
# =========================================

def backfill_input_qty(conn: Connection) -> int:
    """input_qty = produced_qty เฉพาะแถวที่ยัง NULL; ต้องเสร็จก่อนตั้ง NOT NULL"""
    result = conn.execute(
        sa.text('UPDATE "CrusherRuns" SET input_qty = produced_qty WHERE input_qty IS NULL')
    )
    left = conn.execute(
        sa.text('SELECT COUNT(*) FROM "CrusherRuns" WHERE input_qty IS NULL')
    ).scalar()
    if left:
        raise MigrationPreconditionError(
            f"{left} crusher runs have neither input_qty nor produced_qty; cannot make input_qty NOT NULL"
        )
    return result.rowcount or 0


def backfill_run_status(conn: Connection) -> int:
    """run ที่มีการส่งออกแล้ว: PARTIALLY_/FULLY_DISPATCHED ตาม dispatched_qty"""
    # literal ตรง ๆ ต่อคำสั่ง (PostgreSQL: CASE ของ literal จะกลายเป็น text ใส่ enum ไม่ได้)
    full = conn.execute(
        sa.text(
            "UPDATE \"CrusherRuns\" SET status = 'FULLY_DISPATCHED' "
            "WHERE dispatched_qty > 0 AND dispatched_qty >= produced_qty"
        )
    )
    partial = conn.execute(
        sa.text(
            "UPDATE \"CrusherRuns\" SET status = 'PARTIALLY_DISPATCHED' "
            "WHERE dispatched_qty > 0 AND dispatched_qty < produced_qty"
        )
    )
    return (full.rowcount or 0) + (partial.rowcount or 0)


def require_run_materials(conn: Connection) -> None:
    """material_id จะเป็น NOT NULL: run ที่ไม่มี material ต้องแก้มือก่อน"""
    ids = [
        r[0]
        for r in conn.execute(
            sa.text('SELECT id FROM "CrusherRuns" WHERE material_id IS NULL ORDER BY id')
        ).all()
    ]
    if ids:
        raise MigrationPreconditionError(
            f"CrusherRuns ids {ids} have no material_id; assign a material before making it NOT NULL"
        )


def backfill_machine_id(conn: Connection, machine_id: int = BOOTSTRAP_MACHINE_ID) -> int:
    result = conn.execute(
        sa.text('UPDATE "CrusherRuns" SET machine_id = :mid WHERE machine_id IS NULL'),
        {"mid": machine_id},
    )
    return result.rowcount or 0


def ensure_bootstrap_machine(conn: Connection) -> bool:
    """
    ใส่เครื่อง id=1 ถ้าตารางยังว่าง (CrusherRuns.machine_id default = 1)
    คืน True ถ้าเพิ่งสร้าง
    """
    if not has_table(conn, "CrusherMachines"):
        return False
    count = conn.execute(sa.text('SELECT COUNT(*) FROM "CrusherMachines"')).scalar()
    if count:
        return False

    machines = sa.table(
        "CrusherMachines",
        sa.column("id"),
        sa.column("name"),
        sa.column("status"),
        sa.column("last_maintenance_date"),
        sa.column("created_at"),
        sa.column("updated_at"),
    )
    now = _now()
    conn.execute(
        sa.insert(machines).values(
            id=BOOTSTRAP_MACHINE_ID,
            name=BOOTSTRAP_MACHINE_NAME,
            status="ACTIVE",
            last_maintenance_date=now,
            created_at=now,
            updated_at=now,
        )
    )
    if conn.dialect.name == "postgresql":
        # explicit id ไม่ขยับ sequence; ขยับเองไม่งั้น insert ถัดไปชน id=1
        conn.execute(
            sa.text(
                "SELECT setval(pg_get_serial_sequence('\"CrusherMachines\"', 'id'), "
                '(SELECT MAX(id) FROM "CrusherMachines"))'
            )
        )
    logger.info("Inserted bootstrap crusher machine id=%s", BOOTSTRAP_MACHINE_ID)
    return True
