def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def _material(client, name, uom="MT"):
    r = client.post("/api/v1/materials", json={"name": name, "uom": uom})
    assert r.status_code == 201, r.text
    return r.json()


def _customer(client, name="NUVOCO ANJANAPURA", gst=None):
    r = client.post("/api/v1/customers", json={"name": name, "gstNo": gst, "mapsLink": "https://maps.example/1"})
    assert r.status_code == 201, r.text
    return r.json()


def test_material_crud_and_duplicate(client):
    m = _material(client, "M.SAND")
    assert set(m) >= {"id", "name", "uom", "createdAt", "updatedAt"}

    r = client.post("/api/v1/materials", json={"name": "M.SAND"})
    assert r.status_code == 409

    r = client.put(f"/api/v1/materials/{m['id']}", json={"uom": "Ton"})
    assert r.status_code == 200
    assert r.json()["uom"] == "Ton"

    r = client.delete(f"/api/v1/materials/{m['id']}")
    assert r.status_code == 204
    assert client.get(f"/api/v1/materials/{m['id']}").status_code == 404


def test_customer_fields_are_camel_case(client):
    c = _customer(client, gst=" 29abcde1234f1z5 ")
    assert c["gstNo"] == "29ABCDE1234F1Z5"
    assert c["mapsLink"] == "https://maps.example/1"
    assert "gst_no" not in c

    r = client.post("/api/v1/customers", json={"name": "Copy", "gstNo": "29ABCDE1234F1Z5"})
    assert r.status_code == 409


def test_snake_case_input_also_accepted(client):
    r = client.post("/api/v1/vendors", json={"name": "AMB TRADERS", "gst_no": "29AAAAA0000A1Z5"})
    assert r.status_code == 201
    assert r.json()["gstNo"] == "29AAAAA0000A1Z5"


def test_sales_order_with_items(client):
    customer = _customer(client)
    sand = _material(client, "M.SAND")
    gravel = _material(client, "GRAVEL")

    payload = {
        "customerId": customer["id"],
        "vehicleNo": "KA01AB1234",
        "challanNo": "CH-001",
        "items": [
            {"materialId": sand["id"], "qty": 10, "rate": 100},
            {"materialId": gravel["id"], "qty": 5, "rate": 200},
        ],
    }
    r = client.post("/api/v1/sales-orders", json=payload)
    assert r.status_code == 201, r.text
    order = r.json()
    assert [(i["materialId"], i["qty"], i["rate"], i["uom"]) for i in order["items"]] == [
        (sand["id"], 10.0, 100.0, "Ton"),
        (gravel["id"], 5.0, 200.0, "Ton"),
    ]
    assert order["totalAmount"] == 2000.0

    # material in use
    r = client.delete(f"/api/v1/materials/{sand['id']}")
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "invalid_reference"

    r = client.delete(f"/api/v1/sales-orders/{order['id']}")
    assert r.status_code == 204
    assert client.get(f"/api/v1/sales-orders/{order['id']}").status_code == 404
    assert client.delete(f"/api/v1/materials/{sand['id']}").status_code == 204


def test_sales_order_unknown_customer(client):
    r = client.post("/api/v1/sales-orders", json={"customerId": 999, "items": []})
    assert r.status_code == 409


def test_dispatch_reports_difference(client):
    sand = _material(client, "M.SAND")
    r = client.post(
        "/api/v1/crusher-runs",
        json={"materialId": sand["id"], "machineId": 1, "inputQty": 100, "producedQty": 95},
    )
    assert r.status_code == 201, r.text
    run = r.json()
    assert run["yieldPct"] == 95.0
    assert run["remainingQty"] == 95.0

    r = client.post(
        "/api/v1/dispatches",
        json={
            "crusherRunId": run["id"],
            "quantity": 35.2,
            "destination": "Anjanapura",
            "vehicleNo": "KA01AB1234",
            "pickupQuantity": 35.203,
            "dropQuantity": 35.735,
            "deliveryDuration": 2,
        },
    )
    assert r.status_code == 201, r.text
    d = r.json()
    assert d["pickupDropDifference"] == -0.532
    assert d["transitLoss"] == 0.532
    assert d["deliveryStatus"] == "PENDING"
    assert d["deliveryDuration"] == 2

    r = client.put(f"/api/v1/dispatches/{d['id']}", json={"deliveryStatus": "DELIVERED", "notes": "ok"})
    assert r.status_code == 200
    assert r.json()["deliveryStatus"] == "DELIVERED"

    listed = client.get("/api/v1/dispatches", params={"crusherRunId": run["id"]}).json()
    assert [x["id"] for x in listed] == [d["id"]]


def test_bad_enum_value_is_422(client):
    r = client.post("/api/v1/crusher-machines", json={"name": "Jaw 3", "status": "BROKEN"})
    assert r.status_code == 422


def test_missing_required_field_is_422(client):
    r = client.post("/api/v1/crusher-sites", json={"name": "Jigani"})
    assert r.status_code == 422


def _run(client, produced=95):
    sand = _material(client, "M.SAND")
    r = client.post(
        "/api/v1/crusher-runs",
        json={"materialId": sand["id"], "inputQty": 100, "producedQty": produced},
    )
    assert r.status_code == 201, r.text
    return r.json()


def _dispatch(client, run_id, quantity):
    return client.post(
        "/api/v1/dispatches",
        json={"crusherRunId": run_id, "quantity": quantity, "destination": "Hosur", "vehicleNo": "KA05CD5678"},
    )


def test_dispatch_draws_down_run(client):
    run = _run(client)
    assert run["status"] == "PENDING"

    r = _dispatch(client, run["id"], 500)
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "quantity_unavailable"
    assert "95" in r.json()["detail"]["message"]

    d = _dispatch(client, run["id"], 40)
    assert d.status_code == 201, d.text
    after = client.get(f"/api/v1/crusher-runs/{run['id']}").json()
    assert after["dispatchedQty"] == 40
    assert after["remainingQty"] == 55
    assert after["status"] == "PARTIALLY_DISPATCHED"

    assert _dispatch(client, run["id"], 55).status_code == 201
    after = client.get(f"/api/v1/crusher-runs/{run['id']}").json()
    assert after["remainingQty"] == 0
    assert after["status"] == "FULLY_DISPATCHED"
    assert _dispatch(client, run["id"], 1).status_code == 400


def test_dispatch_update_and_delete_adjust_run(client):
    run = _run(client)
    d = _dispatch(client, run["id"], 40).json()

    r = client.put(f"/api/v1/dispatches/{d['id']}", json={"quantity": 60})
    assert r.status_code == 200, r.text
    assert client.get(f"/api/v1/crusher-runs/{run['id']}").json()["dispatchedQty"] == 60

    r = client.put(f"/api/v1/dispatches/{d['id']}", json={"quantity": 96})
    assert r.status_code == 400
    assert client.get(f"/api/v1/dispatches/{d['id']}").json()["quantity"] == 60
    assert client.get(f"/api/v1/crusher-runs/{run['id']}").json()["dispatchedQty"] == 60

    assert client.delete(f"/api/v1/dispatches/{d['id']}").status_code == 204
    after = client.get(f"/api/v1/crusher-runs/{run['id']}").json()
    assert after["dispatchedQty"] == 0
    assert after["status"] == "COMPLETED"


def test_dispatch_for_unknown_run_is_409(client):
    r = _dispatch(client, 999, 1)
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "invalid_reference"


def test_dispatch_quantity_must_be_positive(client):
    run = _run(client)
    assert _dispatch(client, run["id"], 0).status_code == 422
