from typing import Callable, List, Optional, Type
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session
from sqlalchemy import select
import crud
from database import get_db
from utils.db_errors import DataIntegrityError


def raise_http(e: DataIntegrityError):
    raise HTTPException(status_code=e.status_code, detail=e.to_detail()) from e


def make_crud_router(
    Model,
    prefix: str,
    CreateSchema: Type[BaseModel],
    UpdateSchema: Type[BaseModel],
    OutSchema: Type[BaseModel],
    list_order_by: Optional = None,
    unique_fields: Optional[List[str]] = None,
    before_create: Optional[Callable[[Session, dict], None]] = None,
    before_update: Optional[Callable[[Session, object, dict], None]] = None,
    tags: Optional[List[str]] = None,
):
    """
    สร้าง CRUD router ให้ Model:
    - GET /{prefix}            : list
    - GET /{prefix}/{id}       : get one
    - POST /{prefix}           : create
    - PUT /{prefix}/{id}       : update
    - DELETE /{prefix}/{id}    : delete
    body/response เป็น camelCase ตาม schema; error จาก DB -> 409/422
    """
    router = APIRouter(prefix=f"/{prefix}", tags=tags or [prefix])

    def _unique_check(db: Session, data: dict, current_id: int = None):
        # เช็คก่อนให้ข้อความอ่านง่าย; DB ยังเป็นตัวตัดสินสุดท้าย
        for f in unique_fields or []:
            if data.get(f) is None:
                continue
            exists = db.scalars(select(Model).where(getattr(Model, f) == data[f])).first()
            if exists and exists.id != current_id:
                raise HTTPException(status_code=409, detail=f"{f} already exists")

    # List
    @router.get("", response_model=List[OutSchema])
    def list_items(db: Session = Depends(get_db)):
        return crud.list_all(db, Model, order_by=list_order_by)

    # Get one
    @router.get("/{item_id}", response_model=OutSchema)
    def get_item(item_id: int, db: Session = Depends(get_db)):
        obj = crud.get(db, Model, item_id)
        if not obj:
            raise HTTPException(status_code=404, detail="Not found")
        return obj

    # Create
    @router.post("", response_model=OutSchema, status_code=status.HTTP_201_CREATED)
    def create_item(payload: CreateSchema, db: Session = Depends(get_db)):
        data = payload.model_dump(exclude_unset=True)
        _unique_check(db, data)
        if before_create:
            before_create(db, data)
        try:
            return crud.create(db, Model, data)
        except DataIntegrityError as e:
            raise_http(e)

    # Update
    @router.put("/{item_id}", response_model=OutSchema)
    def update_item(item_id: int, payload: UpdateSchema, db: Session = Depends(get_db)):
        obj = crud.get(db, Model, item_id)
        if not obj:
            raise HTTPException(status_code=404, detail="Not found")

        data = payload.model_dump(exclude_unset=True)
        _unique_check(db, data, current_id=obj.id)
        if before_update:
            before_update(db, obj, data)
        try:
            return crud.update(db, obj, data)
        except DataIntegrityError as e:
            raise_http(e)

    # Delete
    @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_item(item_id: int, db: Session = Depends(get_db)):
        obj = crud.get(db, Model, item_id)
        if not obj:
            raise HTTPException(status_code=404, detail="Not found")
        try:
            crud.delete(db, obj)
        except DataIntegrityError as e:
            raise_http(e)
        return None

    return router
