# routers/v1/__init__.py
from fastapi import APIRouter

from generic_router import make_crud_router
from models import (
    CrusherMachine, CrusherRun, CrusherSite, Customer, Material, PurchaseOrder, User, Vendor,
)
from schemas import (
    CrusherMachineCreate, CrusherMachineOut, CrusherMachineUpdate,
    CrusherRunCreate, CrusherRunOut, CrusherRunUpdate,
    CrusherSiteCreate, CrusherSiteOut, CrusherSiteUpdate,
    CustomerCreate, CustomerOut, CustomerUpdate,
    MaterialCreate, MaterialOut, MaterialUpdate,
    PurchaseOrderCreate, PurchaseOrderOut, PurchaseOrderUpdate,
    UserCreate, UserOut, UserUpdate,
    VendorCreate, VendorOut, VendorUpdate,
)

from . import dispatches, sales_orders

api_v1 = APIRouter()

############ auto routers ######################
api_v1.include_router(make_crud_router(
    Material, "materials", MaterialCreate, MaterialUpdate, MaterialOut,
    list_order_by=Material.name, unique_fields=["name"],
))
api_v1.include_router(make_crud_router(
    CrusherSite, "crusher-sites", CrusherSiteCreate, CrusherSiteUpdate, CrusherSiteOut,
    list_order_by=CrusherSite.name,
))
api_v1.include_router(make_crud_router(
    Customer, "customers", CustomerCreate, CustomerUpdate, CustomerOut,
    list_order_by=Customer.name, unique_fields=["gst_no"],
))
api_v1.include_router(make_crud_router(
    Vendor, "vendors", VendorCreate, VendorUpdate, VendorOut,
    list_order_by=Vendor.name, unique_fields=["gst_no"],
))
api_v1.include_router(make_crud_router(
    CrusherMachine, "crusher-machines", CrusherMachineCreate, CrusherMachineUpdate, CrusherMachineOut,
))
api_v1.include_router(make_crud_router(
    CrusherRun, "crusher-runs", CrusherRunCreate, CrusherRunUpdate, CrusherRunOut,
    list_order_by=CrusherRun.run_date.desc(),
))
api_v1.include_router(make_crud_router(
    PurchaseOrder, "purchase-orders", PurchaseOrderCreate, PurchaseOrderUpdate, PurchaseOrderOut,
    list_order_by=PurchaseOrder.id.desc(),
))
api_v1.include_router(make_crud_router(
    User, "users", UserCreate, UserUpdate, UserOut,
    list_order_by=User.email, unique_fields=["email"],
))

# custom
api_v1.include_router(sales_orders.router)
api_v1.include_router(dispatches.router)

__all__ = ["api_v1"]
