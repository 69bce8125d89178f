from __future__ import annotations

from typing import Optional, List, Any, Dict
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from models import AuditAction, CrusherRunStatus, DeliveryStatus, MachineStatus, PurchaseOrderStatus, UserRole

# =========================
# ===== Base (Pydantic v2)
# =========================
class APIBase(BaseModel):
    """
    Base สำหรับทุก schema:
    - from_attributes=True: รองรับแปลงจาก ORM (SQLAlchemy)
    - alias_generator=to_camel: JSON ใช้ camelCase (customerId), DB/ORM ใช้ snake_case (customer_id)
    - populate_by_name=True: รับได้ทั้งสองแบบ
    """
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class TimestampsOut(APIBase):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =========================================
# =============== Materials ===============
# =========================================
class MaterialCreate(APIBase):
    name: str
    uom: Optional[str] = None

class MaterialUpdate(APIBase):
    name: Optional[str] = None
    uom: Optional[str] = None

class MaterialOut(TimestampsOut):
    id: int
    name: str
    uom: Optional[str] = None


# =========================================
# ============= Crusher Sites =============
# =========================================
class CrusherSiteCreate(APIBase):
    name: str
    owner: str
    location: str

class CrusherSiteUpdate(APIBase):
    name: Optional[str] = None
    owner: Optional[str] = None
    location: Optional[str] = None

class CrusherSiteOut(TimestampsOut):
    id: int
    name: str
    owner: str
    location: str


# =========================================
# ========== Customers / Vendors ==========
# =========================================
class PartyBase(APIBase):
    contact: Optional[str] = None
    address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    maps_link: Optional[str] = None
    gst_no: Optional[str] = None

    @field_validator("gst_no")
    @classmethod
    def _clean_gst(cls, v):
        if v is None:
            return None
        v = v.strip().upper()
        return v or None

class PartyCreate(PartyBase):
    name: str

class PartyUpdate(PartyBase):
    name: Optional[str] = None

class PartyOut(PartyBase, TimestampsOut):
    id: int
    name: str
    full_address: Optional[str] = None

CustomerCreate = PartyCreate
CustomerUpdate = PartyUpdate
CustomerOut = PartyOut
VendorCreate = PartyCreate
VendorUpdate = PartyUpdate
VendorOut = PartyOut


# =========================================
# ============ Crusher Machines ===========
# =========================================
class CrusherMachineCreate(APIBase):
    name: str
    status: MachineStatus = MachineStatus.ACTIVE
    last_maintenance_date: Optional[datetime] = None

class CrusherMachineUpdate(APIBase):
    name: Optional[str] = None
    status: Optional[MachineStatus] = None
    last_maintenance_date: Optional[datetime] = None

class CrusherMachineOut(TimestampsOut):
    id: int
    name: str
    status: MachineStatus
    last_maintenance_date: Optional[datetime] = None


# =========================================
# ============== Crusher Runs =============
# =========================================
class CrusherRunCreate(APIBase):
    material_id: int
    machine_id: int = 1
    input_qty: float
    produced_qty: float
    dispatched_qty: float = 0
    status: CrusherRunStatus = CrusherRunStatus.PENDING
    run_date: Optional[datetime] = None

class CrusherRunUpdate(APIBase):
    material_id: Optional[int] = None
    machine_id: Optional[int] = None
    input_qty: Optional[float] = None
    produced_qty: Optional[float] = None
    dispatched_qty: Optional[float] = None
    status: Optional[CrusherRunStatus] = None
    run_date: Optional[datetime] = None

class CrusherRunOut(TimestampsOut):
    id: int
    material_id: int
    machine_id: int
    input_qty: float
    produced_qty: float
    dispatched_qty: float
    status: CrusherRunStatus
    run_date: Optional[datetime] = None
    remaining_qty: Optional[float] = None
    yield_pct: Optional[float] = None


# =========================================
# ============== Sales Orders =============
# =========================================
class SalesOrderItemIn(APIBase):
    material_id: int
    crusher_site_id: Optional[int] = None
    qty: float
    rate: float
    uom: str = "Ton"

class SalesOrderItemOut(SalesOrderItemIn):
    id: int
    sales_order_id: int
    amount: float

class SalesOrderCreate(APIBase):
    customer_id: int
    vehicle_no: Optional[str] = None
    challan_no: Optional[str] = None
    address: Optional[str] = None
    order_date: Optional[datetime] = None
    items: List[SalesOrderItemIn] = Field(default_factory=list)

class SalesOrderUpdate(APIBase):
    customer_id: Optional[int] = None
    vehicle_no: Optional[str] = None
    challan_no: Optional[str] = None
    address: Optional[str] = None
    order_date: Optional[datetime] = None

class SalesOrderOut(TimestampsOut):
    id: int
    customer_id: int
    vehicle_no: Optional[str] = None
    challan_no: Optional[str] = None
    address: Optional[str] = None
    order_date: Optional[datetime] = None
    items: List[SalesOrderItemOut] = Field(default_factory=list)
    total_amount: float = 0


# =========================================
# ============ Purchase Orders ============
# =========================================
class PurchaseOrderCreate(APIBase):
    vendor_id: int
    material_id: int
    qty: float
    rate: float
    status: PurchaseOrderStatus = PurchaseOrderStatus.PENDING
    order_date: Optional[datetime] = None

class PurchaseOrderUpdate(APIBase):
    vendor_id: Optional[int] = None
    material_id: Optional[int] = None
    qty: Optional[float] = None
    rate: Optional[float] = None
    status: Optional[PurchaseOrderStatus] = None
    order_date: Optional[datetime] = None

class PurchaseOrderOut(TimestampsOut):
    id: int
    vendor_id: int
    material_id: int
    qty: float
    rate: float
    status: PurchaseOrderStatus
    order_date: Optional[datetime] = None
    amount: float


# =========================================
# ================ Dispatches =============
# =========================================
class DispatchCreate(APIBase):
    crusher_run_id: int
    sales_order_id: Optional[int] = None
    purchase_order_id: Optional[int] = None
    dispatch_date: Optional[datetime] = None
    quantity: float = Field(gt=0)
    destination: str
    vehicle_no: str
    driver: Optional[str] = None
    pickup_quantity: Optional[float] = None
    drop_quantity: Optional[float] = None
    delivery_status: DeliveryStatus = DeliveryStatus.PENDING
    delivery_duration: Optional[int] = None
    notes: Optional[str] = None

class DispatchUpdate(APIBase):
    sales_order_id: Optional[int] = None
    purchase_order_id: Optional[int] = None
    dispatch_date: Optional[datetime] = None
    quantity: Optional[float] = Field(None, gt=0)
    destination: Optional[str] = None
    vehicle_no: Optional[str] = None
    driver: Optional[str] = None
    pickup_quantity: Optional[float] = None
    drop_quantity: Optional[float] = None
    delivery_status: Optional[DeliveryStatus] = None
    delivery_duration: Optional[int] = None
    notes: Optional[str] = None

class DispatchOut(TimestampsOut):
    id: int
    crusher_run_id: int
    sales_order_id: Optional[int] = None
    purchase_order_id: Optional[int] = None
    dispatch_date: Optional[datetime] = None
    quantity: float
    destination: str
    vehicle_no: str
    driver: Optional[str] = None
    pickup_quantity: Optional[float] = None
    drop_quantity: Optional[float] = None
    pickup_drop_difference: Optional[float] = None
    transit_loss: Optional[float] = None
    delivery_status: DeliveryStatus
    delivery_duration: Optional[int] = None
    notes: Optional[str] = None


# =========================================
# ============ Users & Audit ==============
# =========================================
class UserCreate(APIBase):
    email: str
    name: Optional[str] = None
    role: UserRole = UserRole.STAFF
    is_active: bool = True

class UserUpdate(APIBase):
    name: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

class UserOut(TimestampsOut):
    id: int
    email: str
    name: Optional[str] = None
    role: UserRole
    last_login: Optional[datetime] = None
    is_active: bool

class UserAuditLogOut(APIBase):
    id: int
    user_id: int
    action: AuditAction
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    changes: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None
