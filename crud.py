from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from models import (
    AuditAction,
    CrusherRun,
    Dispatch,
    PurchaseOrder,
    SalesOrder,
    SalesOrderItem,
    UserAuditLog,
)
from utils import sa_update_from_dict
from utils.db_errors import (
    DataIntegrityError,
    InvalidReferenceError,
    InvalidValueError,
    QuantityUnavailableError,
    translate_integrity_error,
)


def commit_or_raise(db: Session):
    """commit; ถ้า DB ปฏิเสธ -> rollback แล้ว raise error ที่แยกประเภทแล้ว"""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise translate_integrity_error(e) from e
    except DataError as e:
        # PostgreSQL: enum label ผิดบางกรณีมาเป็น DataError
        db.rollback()
        raise InvalidValueError(str(e.orig).strip().splitlines()[0]) from e


# =========================================
# ================ Generic ================
# =========================================

def get(db: Session, Model, item_id: int):
    return db.get(Model, item_id)


def list_all(db: Session, Model, order_by=None) -> List:
    stmt = select(Model)
    stmt = stmt.order_by(order_by if order_by is not None else Model.id)
    return db.scalars(stmt).all()


def create(db: Session, Model, data: dict):
    obj = Model()
    sa_update_from_dict(obj, data)
    db.add(obj)
    commit_or_raise(db)
    db.refresh(obj)
    return obj


def update(db: Session, obj, data: dict):
    sa_update_from_dict(obj, data)
    commit_or_raise(db)
    db.refresh(obj)
    return obj


def delete(db: Session, obj) -> None:
    db.delete(obj)
    commit_or_raise(db)


# =========================================
# ============== Sales Orders =============
# =========================================

def create_sales_order(db: Session, header: dict, items: Iterable[dict]) -> SalesOrder:
    """หัวบิล + รายการ commit พร้อมกัน (ถ้ารายการไหนพัง ทั้งบิลไม่ถูกบันทึก)"""
    order = SalesOrder()
    sa_update_from_dict(order, header)
    for line in items:
        item = SalesOrderItem()
        sa_update_from_dict(item, line)
        order.items.append(item)
    db.add(order)
    commit_or_raise(db)
    return get_sales_order(db, order.id)


def get_sales_order(db: Session, order_id: int) -> Optional[SalesOrder]:
    stmt = (
        select(SalesOrder)
        .where(SalesOrder.id == order_id)
        .options(
            joinedload(SalesOrder.customer),
            selectinload(SalesOrder.items).joinedload(SalesOrderItem.material),
            selectinload(SalesOrder.items).joinedload(SalesOrderItem.crusher_site),
        )
        .execution_options(populate_existing=True)
    )
    return db.scalars(stmt).first()


# =========================================
# ================ Dispatches =============
# =========================================

def _dispatch_options():
    return (
        joinedload(Dispatch.crusher_run).joinedload(CrusherRun.material),
        joinedload(Dispatch.crusher_run).joinedload(CrusherRun.machine),
        joinedload(Dispatch.sales_order).joinedload(SalesOrder.customer),
        joinedload(Dispatch.purchase_order).joinedload(PurchaseOrder.vendor),
    )


def get_dispatch(db: Session, dispatch_id: int) -> Optional[Dispatch]:
    stmt = select(Dispatch).where(Dispatch.id == dispatch_id).options(*_dispatch_options())
    return db.scalars(stmt).first()


def _take_from_run(db: Session, run_id: int, qty: float) -> CrusherRun:
    run = db.get(CrusherRun, run_id)
    if run is None:
        raise InvalidReferenceError(f"CrusherRun {run_id} not found", constraint="fk_Dispatches_crusher_run_id_CrusherRuns")
    available = round(run.remaining_qty, 3)
    if round(qty, 3) > available:
        raise QuantityUnavailableError(f"Cannot dispatch more than available quantity ({available})")
    run.dispatched_qty = round((run.dispatched_qty or 0) + qty, 3)
    return run


def _return_to_run(db: Session, run_id: int, qty: float) -> None:
    run = db.get(CrusherRun, run_id)
    if run is not None:
        run.dispatched_qty = max(round((run.dispatched_qty or 0) - qty, 3), 0)


def create_dispatch(db: Session, data: dict) -> Dispatch:
    """ตัดยอดจาก run แล้วสร้าง dispatch ใน commit เดียว"""
    _take_from_run(db, data.get("crusher_run_id"), data.get("quantity") or 0)
    obj = Dispatch()
    sa_update_from_dict(obj, data)
    db.add(obj)
    commit_or_raise(db)
    return get_dispatch(db, obj.id)


def update_dispatch(db: Session, obj: Dispatch, data: dict) -> Dispatch:
    """เปลี่ยน quantity: คืนยอดเดิมให้ run ก่อน แล้วตัดยอดใหม่"""
    qty = data.get("quantity")
    if qty is not None and qty != obj.quantity:
        _return_to_run(db, obj.crusher_run_id, obj.quantity)
        try:
            _take_from_run(db, obj.crusher_run_id, qty)
        except DataIntegrityError:
            db.rollback()
            raise
    sa_update_from_dict(obj, data)
    commit_or_raise(db)
    return get_dispatch(db, obj.id)


def delete_dispatch(db: Session, obj: Dispatch) -> None:
    _return_to_run(db, obj.crusher_run_id, obj.quantity)
    db.delete(obj)
    commit_or_raise(db)


def list_dispatches(db: Session, sales_order_id: int = None, crusher_run_id: int = None) -> List[Dispatch]:
    stmt = select(Dispatch).options(*_dispatch_options()).order_by(Dispatch.dispatch_date.desc(), Dispatch.id.desc())
    if sales_order_id is not None:
        stmt = stmt.where(Dispatch.sales_order_id == sales_order_id)
    if crusher_run_id is not None:
        stmt = stmt.where(Dispatch.crusher_run_id == crusher_run_id)
    return db.scalars(stmt).unique().all()


# =========================================
# ================= Audit =================
# =========================================

def record_audit(
    db: Session,
    user_id: int,
    action,
    entity_type: str = None,
    entity_id: int = None,
    changes: dict = None,
    ip_address: str = None,
) -> UserAuditLog:
    """append-only: ไม่มีฟังก์ชันแก้/ลบ log"""
    log = UserAuditLog(
        user_id=user_id,
        action=AuditAction.parse(action),
        entity_type=entity_type,
        entity_id=entity_id,
        changes=changes,
        ip_address=ip_address,
    )
    db.add(log)
    commit_or_raise(db)
    db.refresh(log)
    return log
