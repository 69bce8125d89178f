# routers/v1/dispatches.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

import crud
from database import get_db
from generic_router import raise_http
from models import Dispatch
from schemas import DispatchCreate, DispatchOut, DispatchUpdate
from utils.db_errors import DataIntegrityError

router = APIRouter(prefix="/dispatches", tags=["dispatches"])


@router.get("", response_model=List[DispatchOut])
def list_dispatches(
    sales_order_id: Optional[int] = Query(None, alias="salesOrderId"),
    crusher_run_id: Optional[int] = Query(None, alias="crusherRunId"),
    db: Session = Depends(get_db),
):
    return crud.list_dispatches(db, sales_order_id=sales_order_id, crusher_run_id=crusher_run_id)


@router.get("/{dispatch_id}", response_model=DispatchOut)
def get_dispatch(dispatch_id: int, db: Session = Depends(get_db)):
    obj = crud.get_dispatch(db, dispatch_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Dispatch not found")
    return obj


@router.post("", response_model=DispatchOut, status_code=status.HTTP_201_CREATED)
def create_dispatch(payload: DispatchCreate, db: Session = Depends(get_db)):
    try:
        return crud.create_dispatch(db, payload.model_dump(exclude_unset=True))
    except DataIntegrityError as e:
        raise_http(e)


@router.put("/{dispatch_id}", response_model=DispatchOut)
def update_dispatch(dispatch_id: int, payload: DispatchUpdate, db: Session = Depends(get_db)):
    obj = crud.get(db, Dispatch, dispatch_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Dispatch not found")
    try:
        return crud.update_dispatch(db, obj, payload.model_dump(exclude_unset=True))
    except DataIntegrityError as e:
        raise_http(e)


@router.delete("/{dispatch_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_dispatch(dispatch_id: int, db: Session = Depends(get_db)):
    obj = crud.get(db, Dispatch, dispatch_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Dispatch not found")
    try:
        crud.delete_dispatch(db, obj)
    except DataIntegrityError as e:
        raise_http(e)
    return None
