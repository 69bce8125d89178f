import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError

from models import (
    CrusherMachine,
    CrusherRun,
    CrusherRunStatus,
    CrusherSite,
    CrusherSiteMaterial,
    Customer,
    DeliveryStatus,
    Dispatch,
    MachineStatus,
    Material,
    PurchaseOrder,
    PurchaseOrderStatus,
    SalesOrder,
    SalesOrderItem,
    Vendor,
    run_status_for,
)


def _count(db, model):
    return db.scalar(select(func.count()).select_from(model))


@pytest.fixture
def masters(db):
    sand = Material(name="M.SAND", uom="MT")
    gravel = Material(name="GRAVEL", uom="MT")
    site = CrusherSite(name="Jigani Site", owner="OM Transport", location="Jigani")
    customer = Customer(name="NUVOCO ANJANAPURA", gst_no="29ABCDE1234F1Z5")
    vendor = Vendor(name="AMB TRADERS", gst_no="29AAAAA0000A1Z5")
    db.add_all([sand, gravel, site, customer, vendor])
    db.commit()
    return {"sand": sand, "gravel": gravel, "site": site, "customer": customer, "vendor": vendor}


def _order(db, masters):
    order = SalesOrder(customer_id=masters["customer"].id, vehicle_no="KA01AB1234", challan_no="CH-001")
    order.items.append(SalesOrderItem(material_id=masters["sand"].id, crusher_site_id=masters["site"].id, qty=10, rate=100))
    order.items.append(SalesOrderItem(material_id=masters["gravel"].id, qty=5, rate=200))
    db.add(order)
    db.commit()
    return order


# ---------- sales orders ----------

def test_sales_order_round_trip(db, masters):
    order_id = _order(db, masters).id
    db.expunge_all()

    loaded = db.get(SalesOrder, order_id)
    lines = [(i.material.name, i.qty, i.rate, i.uom) for i in loaded.items]
    assert lines == [("M.SAND", 10.0, 100.0, "Ton"), ("GRAVEL", 5.0, 200.0, "Ton")]
    assert loaded.total_amount == 2000.0

    db.delete(loaded)
    db.commit()
    assert _count(db, SalesOrderItem) == 0
    # materials and site stay
    assert _count(db, Material) == 2
    assert _count(db, CrusherSite) == 1


def test_deleting_order_via_sql_cascades_items(db, masters):
    order = _order(db, masters)
    db.execute(text('DELETE FROM "SalesOrders" WHERE id = :id'), {"id": order.id})
    db.commit()
    assert _count(db, SalesOrderItem) == 0
    assert _count(db, Material) == 2


def test_material_in_use_cannot_be_deleted(db, masters):
    _order(db, masters)
    db.delete(masters["sand"])
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
    assert db.get(Material, masters["sand"].id) is not None


def test_site_with_items_cannot_be_deleted(db, masters):
    _order(db, masters)
    db.delete(masters["site"])
    with pytest.raises(IntegrityError):
        db.commit()


# ---------- site <-> material links ----------

def test_site_link_removed_with_site(db, masters):
    db.add(CrusherSiteMaterial(crusher_site_id=masters["site"].id, material_id=masters["sand"].id))
    db.commit()
    db.execute(text('DELETE FROM "CrusherSites" WHERE id = :id'), {"id": masters["site"].id})
    db.commit()
    assert _count(db, CrusherSiteMaterial) == 0
    assert _count(db, Material) == 2


def test_site_link_removed_with_material(db, masters):
    db.add(CrusherSiteMaterial(crusher_site_id=masters["site"].id, material_id=masters["gravel"].id))
    db.commit()
    db.execute(text('DELETE FROM "Materials" WHERE id = :id'), {"id": masters["gravel"].id})
    db.commit()
    assert _count(db, CrusherSiteMaterial) == 0
    assert _count(db, CrusherSite) == 1


def test_site_materials_property(db, masters):
    site = masters["site"]
    site.material_links.append(CrusherSiteMaterial(material=masters["sand"]))
    db.commit()
    assert [m.name for m in site.materials] == ["M.SAND"]


# ---------- uniqueness ----------

def test_material_name_unique(db, masters):
    db.add(Material(name="M.SAND"))
    with pytest.raises(IntegrityError):
        db.commit()


def test_customer_gst_unique(db, masters):
    db.add(Customer(name="Other", gst_no=" 29abcde1234f1z5 "))
    with pytest.raises(IntegrityError):
        db.commit()


def test_vendor_gst_unique(db, masters):
    db.add(Vendor(name="Other", gst_no="29AAAAA0000A1Z5"))
    with pytest.raises(IntegrityError):
        db.commit()


def test_same_gst_allowed_across_customer_and_vendor(db, masters):
    db.add(Vendor(name="NUVOCO as vendor", gst_no="29ABCDE1234F1Z5"))
    db.commit()


def test_blank_gst_stored_as_null(db):
    db.add_all([Customer(name="A", gst_no=""), Customer(name="B", gst_no="   ")])
    db.commit()
    assert db.scalars(select(Customer.gst_no)).all() == [None, None]


def test_full_address(db):
    c = Customer(name="A", street="12 Main Rd", city="Bangalore", state="Karnataka", pincode="560062")
    assert c.full_address == "12 Main Rd, Bangalore, Karnataka, 560062"
    assert Customer(name="B", address="Anjanapura").full_address == "Anjanapura"


# ---------- production / dispatch ----------

def _run(db, masters, machine=None, **kw):
    machine = machine or CrusherMachine(name="Jaw Crusher 2", status=MachineStatus.ACTIVE)
    run = CrusherRun(material=masters["sand"], machine=machine, input_qty=100, produced_qty=95, **kw)
    db.add(run)
    db.commit()
    return run


def test_pickup_drop_difference_negative(db, masters):
    run = _run(db, masters)
    assert run.yield_pct == 95.0
    d = Dispatch(
        crusher_run_id=run.id, quantity=35.2, destination="Anjanapura", vehicle_no="KA01AB1234",
        pickup_quantity=35.203, drop_quantity=35.735,
    )
    db.add(d)
    db.commit()
    db.refresh(d)
    assert d.pickup_drop_difference == -0.532
    assert d.transit_loss == 0.532
    assert d.delivery_status == DeliveryStatus.PENDING


def test_pickup_drop_difference_positive(db, masters):
    run = _run(db, masters)
    d = Dispatch(
        crusher_run_id=run.id, quantity=20, destination="Hosur", vehicle_no="KA05CD5678",
        pickup_quantity=20.5, drop_quantity=20.125,
    )
    db.add(d)
    db.commit()
    assert d.pickup_drop_difference == 0.375
    assert d.transit_loss == 0.375


def test_pickup_drop_difference_missing_weight(db, masters):
    run = _run(db, masters)
    d = Dispatch(crusher_run_id=run.id, quantity=20, destination="Hosur", vehicle_no="KA05", pickup_quantity=20)
    assert d.pickup_drop_difference is None
    assert d.transit_loss is None


def test_pickup_drop_difference_in_query(db, masters):
    run = _run(db, masters)
    db.add_all([
        Dispatch(crusher_run_id=run.id, quantity=1, destination="x", vehicle_no="a",
                 pickup_quantity=10, drop_quantity=12),
        Dispatch(crusher_run_id=run.id, quantity=1, destination="y", vehicle_no="b",
                 pickup_quantity=10, drop_quantity=9),
    ])
    db.commit()
    gained = db.scalars(select(Dispatch.destination).where(Dispatch.pickup_drop_difference < 0)).all()
    assert gained == ["x"]


def test_run_defaults_to_bootstrap_machine(db, masters):
    db.execute(
        text('INSERT INTO "CrusherRuns" (material_id, input_qty, produced_qty) VALUES (:m, 100, 90)'),
        {"m": masters["sand"].id},
    )
    db.commit()
    run = db.scalars(select(CrusherRun)).one()
    assert run.machine_id == 1
    assert run.status == CrusherRunStatus.PENDING
    assert run.remaining_qty == 90


def test_run_requires_material(db):
    db.add(CrusherRun(input_qty=100, produced_qty=90))
    with pytest.raises(IntegrityError):
        db.commit()


def test_run_requires_input_qty(db, masters):
    db.add(CrusherRun(material=masters["sand"], produced_qty=10))
    with pytest.raises(IntegrityError):
        db.commit()


def test_run_with_dispatch_cannot_be_deleted(db, masters):
    run = _run(db, masters)
    db.add(Dispatch(crusher_run_id=run.id, quantity=1, destination="x", vehicle_no="a"))
    db.commit()
    db.delete(run)
    with pytest.raises(IntegrityError):
        db.commit()


def test_run_status_follows_dispatched_qty(db, masters):
    run = _run(db, masters)
    assert run.status == CrusherRunStatus.PENDING

    run.dispatched_qty = 30
    assert run.status == CrusherRunStatus.PARTIALLY_DISPATCHED
    run.dispatched_qty = 95
    assert run.status == CrusherRunStatus.FULLY_DISPATCHED
    run.produced_qty = 120
    assert run.status == CrusherRunStatus.PARTIALLY_DISPATCHED
    run.dispatched_qty = 0
    assert run.status == CrusherRunStatus.COMPLETED
    db.commit()
    db.refresh(run)
    assert run.status == CrusherRunStatus.COMPLETED


@pytest.mark.parametrize(
    "current, produced, dispatched, expected",
    [
        (CrusherRunStatus.PENDING, 95, 0, CrusherRunStatus.PENDING),
        (CrusherRunStatus.COMPLETED, 95, None, CrusherRunStatus.COMPLETED),
        (CrusherRunStatus.PENDING, 95, 35.2, CrusherRunStatus.PARTIALLY_DISPATCHED),
        (CrusherRunStatus.PARTIALLY_DISPATCHED, 95, 95.0004, CrusherRunStatus.FULLY_DISPATCHED),
        (CrusherRunStatus.FULLY_DISPATCHED, 95, 0, CrusherRunStatus.COMPLETED),
    ],
)
def test_run_status_for(current, produced, dispatched, expected):
    assert run_status_for(current, produced, dispatched) is expected


def test_deleting_order_unlinks_dispatch(db, masters):
    order = _order(db, masters)
    run = _run(db, masters)
    d = Dispatch(crusher_run_id=run.id, sales_order_id=order.id, quantity=1, destination="x", vehicle_no="a")
    db.add(d)
    db.commit()
    assert d.is_assigned

    db.execute(text('DELETE FROM "SalesOrders" WHERE id = :id'), {"id": order.id})
    db.commit()
    db.refresh(d)
    assert d.sales_order_id is None
    assert not d.is_assigned


# ---------- enum boundaries ----------

def test_purchase_order_bad_status_rejected_by_db(db, masters):
    with pytest.raises(IntegrityError):
        db.execute(
            text(
                'INSERT INTO "PurchaseOrders" (vendor_id, material_id, qty, rate, status) '
                "VALUES (:v, :m, 1, 1, 'LOST')"
            ),
            {"v": masters["vendor"].id, "m": masters["sand"].id},
        )


def test_purchase_order_status_defaults_to_pending(db, masters):
    po = PurchaseOrder(vendor=masters["vendor"], material=masters["sand"], qty=10, rate=80)
    db.add(po)
    db.commit()
    db.refresh(po)
    assert po.status == PurchaseOrderStatus.PENDING
    assert po.amount == 800.0


def test_machine_bad_status_rejected_by_db(db):
    with pytest.raises(IntegrityError):
        db.execute(text("INSERT INTO \"CrusherMachines\" (name, status) VALUES ('x', 'BROKEN')"))


def test_enum_parse_is_case_sensitive():
    assert PurchaseOrderStatus.parse("RECEIVED") is PurchaseOrderStatus.RECEIVED
    with pytest.raises(ValueError) as exc:
        PurchaseOrderStatus.parse("received")
    assert "PENDING, RECEIVED, PARTIAL" in str(exc.value)


# ---------- users / audit ----------

def test_audit_log_append_and_cascade(db):
    import crud
    from models import AuditAction, User, UserAuditLog

    user = User(email="Staff1@Example.com", name="Staff 1")
    db.add(user)
    db.commit()
    assert user.email == "staff1@example.com"

    log = crud.record_audit(
        db, user.id, "UPDATE", entity_type="Dispatch", entity_id=7,
        changes={"deliveryStatus": ["PENDING", "DELIVERED"]}, ip_address="10.0.0.5",
    )
    assert log.action == AuditAction.UPDATE
    assert log.changes == {"deliveryStatus": ["PENDING", "DELIVERED"]}

    with pytest.raises(ValueError):
        crud.record_audit(db, user.id, "update")

    db.execute(text('DELETE FROM "Users" WHERE id = :id'), {"id": user.id})
    db.commit()
    assert _count(db, UserAuditLog) == 0
