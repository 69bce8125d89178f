# routers/v1/sales_orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import crud
from database import get_db
from generic_router import raise_http
from models import SalesOrder, SalesOrderItem
from schemas import SalesOrderCreate, SalesOrderItemIn, SalesOrderItemOut, SalesOrderOut, SalesOrderUpdate
from utils.db_errors import DataIntegrityError

router = APIRouter(prefix="/sales-orders", tags=["sales-orders"])


def _get_or_404(db: Session, order_id: int) -> SalesOrder:
    order = crud.get_sales_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Sales order not found")
    return order


@router.get("", response_model=List[SalesOrderOut])
def list_sales_orders(db: Session = Depends(get_db)):
    return crud.list_all(db, SalesOrder, order_by=SalesOrder.id.desc())


@router.get("/{order_id}", response_model=SalesOrderOut)
def get_sales_order(order_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, order_id)


@router.post("", response_model=SalesOrderOut, status_code=status.HTTP_201_CREATED)
def create_sales_order(payload: SalesOrderCreate, db: Session = Depends(get_db)):
    header = payload.model_dump(exclude_unset=True, exclude={"items"})
    items = [i.model_dump() for i in payload.items]
    try:
        return crud.create_sales_order(db, header, items)
    except DataIntegrityError as e:
        raise_http(e)


@router.put("/{order_id}", response_model=SalesOrderOut)
def update_sales_order(order_id: int, payload: SalesOrderUpdate, db: Session = Depends(get_db)):
    order = _get_or_404(db, order_id)
    try:
        crud.update(db, order, payload.model_dump(exclude_unset=True))
    except DataIntegrityError as e:
        raise_http(e)
    return crud.get_sales_order(db, order_id)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sales_order(order_id: int, db: Session = Depends(get_db)):
    # รายการถูกลบตาม (CASCADE); dispatch ที่ผูกอยู่เหลือ sales_order_id = NULL
    order = _get_or_404(db, order_id)
    try:
        crud.delete(db, order)
    except DataIntegrityError as e:
        raise_http(e)
    return None


# ---------- items ----------
@router.post("/{order_id}/items", response_model=SalesOrderItemOut, status_code=status.HTTP_201_CREATED)
def add_item(order_id: int, payload: SalesOrderItemIn, db: Session = Depends(get_db)):
    _get_or_404(db, order_id)
    data = payload.model_dump()
    data["sales_order_id"] = order_id
    try:
        return crud.create(db, SalesOrderItem, data)
    except DataIntegrityError as e:
        raise_http(e)


@router.delete("/{order_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(order_id: int, item_id: int, db: Session = Depends(get_db)):
    item = crud.get(db, SalesOrderItem, item_id)
    if not item or item.sales_order_id != order_id:
        raise HTTPException(status_code=404, detail="Item not found")
    try:
        crud.delete(db, item)
    except DataIntegrityError as e:
        raise_http(e)
    return None
