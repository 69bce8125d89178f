# models.py
import enum

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import relationship, validates
from sqlalchemy.ext.hybrid import hybrid_property

from database import Base


# =========================================
# ================ Enums ==================
# =========================================

class _StrEnum(str, enum.Enum):
    """Closed value set. Stored by value; parse() is case-sensitive."""

    @classmethod
    def values(cls):
        return [m.value for m in cls]

    @classmethod
    def parse(cls, raw):
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            raise ValueError(
                f"{raw!r} is not a valid {cls.__name__}; expected one of {', '.join(cls.values())}"
            ) from None


class MachineStatus(_StrEnum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    MAINTENANCE = "MAINTENANCE"


class PurchaseOrderStatus(_StrEnum):
    PENDING = "PENDING"
    RECEIVED = "RECEIVED"
    PARTIAL = "PARTIAL"


class DeliveryStatus(_StrEnum):
    PENDING = "PENDING"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"


class CrusherRunStatus(_StrEnum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    PARTIALLY_DISPATCHED = "PARTIALLY_DISPATCHED"
    FULLY_DISPATCHED = "FULLY_DISPATCHED"


class UserRole(_StrEnum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    STAFF = "STAFF"


class AuditAction(_StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"


def db_enum(py_enum, type_name: str) -> Enum:
    # CHECK is declared separately with a stable name (see enum_check)
    return Enum(
        py_enum,
        name=type_name,
        values_callable=lambda e: [m.value for m in e],
        create_constraint=False,
        validate_strings=True,
    )


def enum_check(column: str, py_enum) -> CheckConstraint:
    allowed = ", ".join(f"'{v}'" for v in py_enum.values())
    return CheckConstraint(f"{column} IN ({allowed})", name=column)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


# =========================================
# =============== Master ==================
# =========================================

class Material(TimestampMixin, Base):
    __tablename__ = "Materials"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    uom = Column(String, nullable=True)

    # DB enforces RESTRICT; ORM must not try to null these out
    runs = relationship("CrusherRun", back_populates="material", passive_deletes="all")
    sales_order_items = relationship("SalesOrderItem", back_populates="material", passive_deletes="all")
    purchase_orders = relationship("PurchaseOrder", back_populates="material", passive_deletes="all")

    site_links = relationship(
        "CrusherSiteMaterial",
        back_populates="material",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Material(id={self.id}, name={self.name})>"


class CrusherSite(TimestampMixin, Base):
    __tablename__ = "CrusherSites"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    owner = Column(String, nullable=False)
    location = Column(String, nullable=False)

    material_links = relationship(
        "CrusherSiteMaterial",
        back_populates="site",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    sales_order_items = relationship("SalesOrderItem", back_populates="crusher_site", passive_deletes="all")

    @property
    def materials(self):
        return [link.material for link in self.material_links]

    def __repr__(self):
        return f"<CrusherSite(id={self.id}, name={self.name})>"


class CrusherSiteMaterial(TimestampMixin, Base):
    """site produces material (one row per pair)"""
    __tablename__ = "CrusherSiteMaterials"

    crusher_site_id = Column(
        Integer, ForeignKey("CrusherSites.id", ondelete="CASCADE"), primary_key=True
    )
    material_id = Column(
        Integer, ForeignKey("Materials.id", ondelete="CASCADE"), primary_key=True
    )

    site = relationship("CrusherSite", back_populates="material_links")
    material = relationship("Material", back_populates="site_links")

    def __repr__(self):
        return f"<CrusherSiteMaterial(site={self.crusher_site_id}, material={self.material_id})>"


class _Party:
    """Customer / Vendor share the same shape."""
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    gst_no = Column(String, nullable=True, unique=True)
    contact = Column(String, nullable=True)
    address = Column(String, nullable=True)   # legacy free text
    street = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    pincode = Column(String, nullable=True)
    maps_link = Column(String, nullable=True)

    @validates("gst_no")
    def _clean_gst(self, key, value):
        # "" would collide with every other blank GST under the unique constraint
        if value is None:
            return None
        value = value.strip().upper()
        return value or None

    @property
    def full_address(self):
        parts = [self.street, self.city, self.state, self.pincode]
        joined = ", ".join(p for p in parts if p)
        return joined or self.address


class Customer(_Party, TimestampMixin, Base):
    __tablename__ = "Customers"

    sales_orders = relationship("SalesOrder", back_populates="customer", passive_deletes="all")

    def __repr__(self):
        return f"<Customer(id={self.id}, name={self.name})>"


class Vendor(_Party, TimestampMixin, Base):
    __tablename__ = "Vendors"

    purchase_orders = relationship("PurchaseOrder", back_populates="vendor", passive_deletes="all")

    def __repr__(self):
        return f"<Vendor(id={self.id}, name={self.name})>"


# =========================================
# ============== Production ===============
# =========================================

class CrusherMachine(TimestampMixin, Base):
    __tablename__ = "CrusherMachines"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    status = Column(
        db_enum(MachineStatus, "machine_status"),
        nullable=False,
        default=MachineStatus.ACTIVE,
        server_default=MachineStatus.ACTIVE.value,
    )
    last_maintenance_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    runs = relationship("CrusherRun", back_populates="machine", passive_deletes="all")

    __table_args__ = (enum_check("status", MachineStatus),)

    def __repr__(self):
        return f"<CrusherMachine(id={self.id}, name={self.name}, status={self.status})>"


def run_status_for(current, produced_qty, dispatched_qty):
    """สถานะตามยอดที่ส่งออกไปแล้ว; ยังไม่ส่งเลยคง PENDING/COMPLETED เดิมไว้"""
    dispatched = dispatched_qty or 0
    if dispatched <= 0:
        if current in (CrusherRunStatus.PARTIALLY_DISPATCHED, CrusherRunStatus.FULLY_DISPATCHED):
            return CrusherRunStatus.COMPLETED
        return current
    if round(dispatched, 3) >= round(produced_qty or 0, 3):
        return CrusherRunStatus.FULLY_DISPATCHED
    return CrusherRunStatus.PARTIALLY_DISPATCHED


class CrusherRun(TimestampMixin, Base):
    """one production batch"""
    __tablename__ = "CrusherRuns"

    id = Column(Integer, primary_key=True)
    material_id = Column(Integer, ForeignKey("Materials.id", ondelete="RESTRICT"), nullable=False, index=True)
    machine_id = Column(
        Integer,
        ForeignKey("CrusherMachines.id", ondelete="RESTRICT"),
        nullable=False,
        server_default=text("1"),   # bootstrap machine
        index=True,
    )
    input_qty = Column(Float, nullable=False)
    produced_qty = Column(Float, nullable=False)
    dispatched_qty = Column(Float, nullable=False, default=0, server_default=text("0"))
    status = Column(
        db_enum(CrusherRunStatus, "crusher_run_status"),
        nullable=False,
        default=CrusherRunStatus.PENDING,
        server_default=CrusherRunStatus.PENDING.value,
    )
    run_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    material = relationship("Material", back_populates="runs")
    machine = relationship("CrusherMachine", back_populates="runs")
    dispatches = relationship("Dispatch", back_populates="crusher_run", passive_deletes="all")

    __table_args__ = (enum_check("status", CrusherRunStatus),)

    @validates("produced_qty", "dispatched_qty")
    def _follow_quantities(self, key, value):
        produced = value if key == "produced_qty" else self.produced_qty
        dispatched = value if key == "dispatched_qty" else self.dispatched_qty
        status = run_status_for(self.status, produced, dispatched)
        if status != self.status:
            self.status = status
        return value

    @property
    def remaining_qty(self):
        return (self.produced_qty or 0) - (self.dispatched_qty or 0)

    @property
    def yield_pct(self):
        if not self.input_qty:
            return None
        return round(self.produced_qty / self.input_qty * 100, 2)

    def __repr__(self):
        return f"<CrusherRun(id={self.id}, produced={self.produced_qty})>"


# =========================================
# ================ Orders =================
# =========================================

class SalesOrder(TimestampMixin, Base):
    __tablename__ = "SalesOrders"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("Customers.id", ondelete="RESTRICT"), nullable=False, index=True)
    vehicle_no = Column(String, nullable=True)
    challan_no = Column(String, nullable=True)
    address = Column(String, nullable=True)
    order_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    customer = relationship("Customer", back_populates="sales_orders")
    items = relationship(
        "SalesOrderItem",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SalesOrderItem.id",
    )
    dispatches = relationship("Dispatch", back_populates="sales_order", passive_deletes=True)

    @property
    def total_amount(self):
        return round(sum(i.amount for i in self.items), 2)

    def __repr__(self):
        return f"<SalesOrder(id={self.id}, customer_id={self.customer_id})>"


class SalesOrderItem(TimestampMixin, Base):
    __tablename__ = "SalesOrderItems"

    id = Column(Integer, primary_key=True)
    sales_order_id = Column(
        Integer,
        ForeignKey("SalesOrders.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    material_id = Column(
        Integer,
        ForeignKey("Materials.id", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    crusher_site_id = Column(
        Integer,
        ForeignKey("CrusherSites.id", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=True,
        index=True,
    )
    qty = Column(Float, nullable=False)
    rate = Column(Float, nullable=False)
    uom = Column(String, nullable=False, default="Ton", server_default="Ton")

    sales_order = relationship("SalesOrder", back_populates="items")
    material = relationship("Material", back_populates="sales_order_items")
    crusher_site = relationship("CrusherSite", back_populates="sales_order_items")

    @property
    def amount(self):
        return round((self.qty or 0) * (self.rate or 0), 2)

    def __repr__(self):
        return f"<SalesOrderItem(order={self.sales_order_id}, material={self.material_id}, qty={self.qty})>"


class PurchaseOrder(TimestampMixin, Base):
    __tablename__ = "PurchaseOrders"

    id = Column(Integer, primary_key=True)
    vendor_id = Column(Integer, ForeignKey("Vendors.id", ondelete="RESTRICT"), nullable=False, index=True)
    material_id = Column(Integer, ForeignKey("Materials.id", ondelete="RESTRICT"), nullable=False, index=True)
    qty = Column(Float, nullable=False)
    rate = Column(Float, nullable=False)
    status = Column(
        db_enum(PurchaseOrderStatus, "purchase_order_status"),
        nullable=False,
        default=PurchaseOrderStatus.PENDING,
        server_default=PurchaseOrderStatus.PENDING.value,
    )
    order_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    vendor = relationship("Vendor", back_populates="purchase_orders")
    material = relationship("Material", back_populates="purchase_orders")
    dispatches = relationship("Dispatch", back_populates="purchase_order", passive_deletes=True)

    __table_args__ = (enum_check("status", PurchaseOrderStatus),)

    @property
    def amount(self):
        return round((self.qty or 0) * (self.rate or 0), 2)

    def __repr__(self):
        return f"<PurchaseOrder(id={self.id}, status={self.status})>"


# =========================================
# =============== Dispatch ================
# =========================================

class Dispatch(TimestampMixin, Base):
    __tablename__ = "Dispatches"

    id = Column(Integer, primary_key=True)
    crusher_run_id = Column(
        Integer, ForeignKey("CrusherRuns.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    # both orders optional; a dispatch outlives either order (SET NULL)
    sales_order_id = Column(
        Integer, ForeignKey("SalesOrders.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True, index=True
    )
    purchase_order_id = Column(
        Integer, ForeignKey("PurchaseOrders.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True, index=True
    )
    dispatch_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    quantity = Column(Float, nullable=False)
    destination = Column(String, nullable=False)
    vehicle_no = Column(String, nullable=False)
    driver = Column(String, nullable=True)
    pickup_quantity = Column(Float, nullable=True)
    drop_quantity = Column(Float, nullable=True)
    delivery_status = Column(
        db_enum(DeliveryStatus, "delivery_status"),
        nullable=False,
        default=DeliveryStatus.PENDING,
        server_default=DeliveryStatus.PENDING.value,
    )
    delivery_duration = Column(Integer, nullable=True)   # days
    notes = Column(Text, nullable=True)

    crusher_run = relationship("CrusherRun", back_populates="dispatches")
    sales_order = relationship("SalesOrder", back_populates="dispatches")
    purchase_order = relationship("PurchaseOrder", back_populates="dispatches")

    __table_args__ = (enum_check("delivery_status", DeliveryStatus),)

    @hybrid_property
    def pickup_drop_difference(self):
        """pickup - drop; negative when more weight arrived than was loaded"""
        if self.pickup_quantity is None or self.drop_quantity is None:
            return None
        return round(self.pickup_quantity - self.drop_quantity, 3)

    @pickup_drop_difference.expression
    def pickup_drop_difference(cls):
        return cls.pickup_quantity - cls.drop_quantity

    @property
    def transit_loss(self):
        """size of the pickup/drop mismatch in tonnes, sign dropped"""
        diff = self.pickup_drop_difference
        if diff is None:
            return None
        return abs(diff)

    @property
    def is_assigned(self):
        return self.sales_order_id is not None or self.purchase_order_id is not None

    def __repr__(self):
        return f"<Dispatch(id={self.id}, run={self.crusher_run_id}, qty={self.quantity})>"


# =========================================
# ============ Users & Audit ==============
# =========================================

class User(TimestampMixin, Base):
    __tablename__ = "Users"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=True)
    role = Column(
        db_enum(UserRole, "user_role"),
        nullable=False,
        default=UserRole.STAFF,
        server_default=UserRole.STAFF.value,
    )
    last_login = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("true"))

    audit_logs = relationship(
        "UserAuditLog",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (enum_check("role", UserRole),)

    @validates("email")
    def _lower_email(self, key, value):
        return value.strip().lower() if value else value

    def __repr__(self):
        return f"<User(email={self.email}, role={self.role})>"


class UserAuditLog(TimestampMixin, Base):
    """append-only"""
    __tablename__ = "UserAuditLogs"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("Users.id", ondelete="CASCADE"), nullable=False)
    action = Column(db_enum(AuditAction, "audit_action"), nullable=False)
    entity_type = Column(String, nullable=True)
    entity_id = Column(Integer, nullable=True)
    changes = Column(JSON, nullable=True)
    ip_address = Column(String, nullable=True)

    user = relationship("User", back_populates="audit_logs")

    __table_args__ = (
        enum_check("action", AuditAction),
        Index("ix_UserAuditLogs_user_id", "user_id"),
    )

    def __repr__(self):
        return f"<UserAuditLog(user={self.user_id}, action={self.action})>"


ALL_TABLES = [
    "Materials", "Customers", "Vendors", "CrusherSites", "CrusherSiteMaterials",
    "CrusherMachines", "CrusherRuns", "SalesOrders", "SalesOrderItems",
    "PurchaseOrders", "Dispatches", "Users", "UserAuditLogs",
]
