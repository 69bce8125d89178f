import pytest
from sqlalchemy import func, select

from models import CrusherMachine, Customer, Material, User, UserRole, Vendor
from services.seed import (
    SAMPLE_CUSTOMERS,
    SAMPLE_MATERIALS,
    SAMPLE_USERS,
    SAMPLE_VENDORS,
    check_role,
    run_all,
    seed_super_admin,
)
from utils.db_errors import SeedError


def _count(db, model, *where):
    stmt = select(func.count()).select_from(model)
    for cond in where:
        stmt = stmt.where(cond)
    return db.scalar(stmt)


def test_seed_twice_creates_nothing_new(db):
    first = run_all(db)
    db.commit()
    second = run_all(db)
    db.commit()

    assert first.created > 0
    assert second.created == 0
    # machine came from the migration already
    assert _count(db, CrusherMachine) == 1
    assert _count(db, User, User.role == UserRole.SUPER_ADMIN) == 1
    assert _count(db, User) == 1 + len(SAMPLE_USERS)
    assert _count(db, Material) == len(SAMPLE_MATERIALS)
    assert _count(db, Customer) == len(SAMPLE_CUSTOMERS)
    assert _count(db, Vendor) == len(SAMPLE_VENDORS)


def test_seed_report_lines(db):
    report = run_all(db, include_samples=False)
    assert set(report.steps) == {"default_machine", "super_admin"}
    assert report.steps["default_machine"] == (0, 1)
    assert report.steps["super_admin"] == (1, 0)
    assert "super_admin: created=1 skipped=0" in report.lines()


def test_default_machine_created_when_table_empty(db):
    db.query(CrusherMachine).delete()
    db.commit()
    report = run_all(db, include_samples=False)
    assert report.steps["default_machine"] == (1, 0)
    assert db.scalars(select(CrusherMachine.name)).one() == "Default Crusher"


def test_super_admin_email_normalized(db):
    created, _ = seed_super_admin(db, email="  Owner@OMTransport.com ", name="Owner")
    db.commit()
    assert created == 1
    assert db.scalars(select(User.email)).one() == "owner@omtransport.com"


def test_existing_email_without_role_is_left_alone(db):
    db.add(User(email="admin@omtransport.com", name="Someone", role=UserRole.STAFF))
    db.commit()
    assert seed_super_admin(db) == (0, 1)
    assert db.scalars(select(User.role)).one() == UserRole.STAFF


@pytest.mark.parametrize("bad", ["superadmin", "super_admin", "OWNER"])
def test_role_mismatch_raises(db, bad):
    with pytest.raises(SeedError):
        check_role(db, bad)
    with pytest.raises(SeedError):
        seed_super_admin(db, role=bad)
    assert _count(db, User) == 0
