# services/seed.py
"""
Bootstrap / sample data. ทุก step เช็คก่อนว่ามีข้อมูลอยู่แล้วหรือยัง
รันซ้ำกี่ครั้งก็ไม่สร้างแถวซ้ำ
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from config import settings
from models import (
    CrusherMachine,
    Customer,
    MachineStatus,
    Material,
    User,
    UserRole,
    Vendor,
)
from utils.db_errors import SeedError
from utils.schema_inspect import enum_values

logger = logging.getLogger(__name__)

DEFAULT_MACHINE_NAME = "Default Crusher"

SAMPLE_MATERIALS = [
    {"name": "M.SAND", "uom": "MT"},
    {"name": "GRAVEL", "uom": "MT"},
    {"name": "JELLY STONES", "uom": "MT"},
]

SAMPLE_CUSTOMERS = [
    {"name": "NUVOCO ANJANAPURA", "address": "Anjanapura, Bangalore", "contact": "9876543210",
     "city": "Bangalore", "state": "Karnataka"},
    {"name": "RAMCO CEMENTS", "address": "Hosur Road, Bangalore", "contact": "9876543211",
     "city": "Bangalore", "state": "Karnataka"},
]

SAMPLE_VENDORS = [
    {"name": "AMB TRADERS", "address": "Jigani, Bangalore", "contact": "9876543212",
     "city": "Bangalore", "state": "Karnataka"},
    {"name": "STONE SUPPLY CO", "address": "Electronic City, Bangalore", "contact": "9876543213",
     "city": "Bangalore", "state": "Karnataka"},
]

SAMPLE_USERS = [
    {"email": "staff1@example.com", "name": "Staff User 1", "role": "STAFF", "is_active": True},
    {"email": "staff2@example.com", "name": "Staff User 2", "role": "STAFF", "is_active": True},
    {"email": "admin1@example.com", "name": "Admin User 1", "role": "ADMIN", "is_active": True},
    {"email": "admin2@example.com", "name": "Admin User 2", "role": "ADMIN", "is_active": True},
    {"email": "inactive@example.com", "name": "Inactive User", "role": "STAFF", "is_active": False},
]


@dataclass
class SeedReport:
    steps: Dict[str, Tuple[int, int]] = field(default_factory=dict)

    def add(self, step: str, created: int, skipped: int):
        self.steps[step] = (created, skipped)

    @property
    def created(self) -> int:
        return sum(c for c, _ in self.steps.values())

    def lines(self) -> List[str]:
        return [f"{name}: created={c} skipped={s}" for name, (c, s) in self.steps.items()]


def allowed_roles(db: Session) -> List[str]:
    """ค่าที่ DB ยอมรับจริง (PostgreSQL: enum_range) ไม่งั้นใช้ UserRole"""
    live = enum_values(db.connection(), "user_role")
    return live if live is not None else UserRole.values()


def check_role(db: Session, role: str) -> UserRole:
    # "superadmin" vs "SUPER_ADMIN" ต้อง fail ตรงนี้ ไม่ใช่ไปพังตอน insert
    allowed = allowed_roles(db)
    if role not in allowed:
        raise SeedError(f"role {role!r} is not a valid user_role value; database accepts {allowed}")
    try:
        return UserRole.parse(role)
    except ValueError as e:
        raise SeedError(str(e)) from e


def seed_default_machine(db: Session) -> Tuple[int, int]:
    count = db.scalar(select(func.count()).select_from(CrusherMachine))
    if count:
        return 0, 1
    db.add(CrusherMachine(name=DEFAULT_MACHINE_NAME, status=MachineStatus.ACTIVE))
    db.flush()
    return 1, 0


def seed_super_admin(db: Session, email: str = None, name: str = None, role: str = "SUPER_ADMIN") -> Tuple[int, int]:
    role_value = check_role(db, role)
    exists = db.scalars(select(User).where(User.role == role_value)).first()
    if exists:
        logger.info("Super admin already exists (%s), skipping", exists.email)
        return 0, 1

    email = (email or settings.SEED_ADMIN_EMAIL).strip().lower()
    if db.scalars(select(User).where(User.email == email)).first():
        # email มีแล้วแต่ role ไม่ใช่ super admin: ไม่แก้ role ให้เอง
        logger.warning("User %s exists without %s role, skipping", email, role_value.value)
        return 0, 1

    db.add(User(email=email, name=name or settings.SEED_ADMIN_NAME, role=role_value, is_active=True))
    db.flush()
    return 1, 0


def seed_sample_users(db: Session) -> Tuple[int, int]:
    created = skipped = 0
    for row in SAMPLE_USERS:
        role = check_role(db, row["role"])
        if db.scalars(select(User).where(User.email == row["email"])).first():
            skipped += 1
            continue
        db.add(User(email=row["email"], name=row["name"], role=role, is_active=row["is_active"]))
        created += 1
    db.flush()
    return created, skipped


def _seed_by_name(db: Session, model, rows) -> Tuple[int, int]:
    created = skipped = 0
    for row in rows:
        if db.scalars(select(model).where(model.name == row["name"])).first():
            skipped += 1
            continue
        db.add(model(**row))
        created += 1
    db.flush()
    return created, skipped


def seed_sample_materials(db: Session) -> Tuple[int, int]:
    return _seed_by_name(db, Material, SAMPLE_MATERIALS)


def seed_sample_customers(db: Session) -> Tuple[int, int]:
    return _seed_by_name(db, Customer, SAMPLE_CUSTOMERS)


def seed_sample_vendors(db: Session) -> Tuple[int, int]:
    return _seed_by_name(db, Vendor, SAMPLE_VENDORS)


def run_all(db: Session, include_samples: bool = True) -> SeedReport:
    report = SeedReport()
    report.add("default_machine", *seed_default_machine(db))
    report.add("super_admin", *seed_super_admin(db))
    if include_samples:
        report.add("sample_users", *seed_sample_users(db))
        report.add("sample_materials", *seed_sample_materials(db))
        report.add("sample_customers", *seed_sample_customers(db))
        report.add("sample_vendors", *seed_sample_vendors(db))
    for line in report.lines():
        logger.info("seed %s", line)
    return report
