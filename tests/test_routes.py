from datetime import datetime, timedelta

from database.models import Order, OrderLink, ProgressReport, RemainingFabric
from tests.conftest import login


def test_login_required(client, seeded):
    r = client.get(f"/orders/{seeded['order_id']}")
    assert r.status_code == 401
    assert r.json["success"] is False


def test_bad_login(client, admin):
    r = login(client, password="wrong")
    assert r.status_code == 401


def test_progress_route_and_error_mapping(admin_client, seeded):
    oid = seeded["order_id"]

    r = admin_client.post(f"/orders/{oid}/progress", json={"pieces_finished": 10, "note": "first batch"})
    assert r.status_code == 201
    assert r.json["order"]["completed_pcs"] == 50
    assert r.json["material_movements"][0]["qty"] == 20.0

    r = admin_client.post(f"/orders/{oid}/progress", json={"pieces_finished": 60})
    assert r.status_code == 400
    assert r.json["kind"] == "ValidationError"

    r = admin_client.post("/orders/9999/progress", json={"pieces_finished": 1})
    assert r.status_code == 404

    r = admin_client.get(f"/orders/{oid}/progress")
    assert len(r.json["reports"]) == 1


def test_status_route(admin_client, seeded):
    oid = seeded["order_id"]
    r = admin_client.post(f"/orders/{oid}/status", json={"status": "shipped"})
    assert r.status_code == 200
    assert r.json["status_change"]["new_status"] == "shipped"

    r = admin_client.post(f"/orders/{oid}/status", json={"status": "teleported"})
    assert r.status_code == 400
    assert "allowed" in r.json["details"]

    r = admin_client.get(f"/orders/{oid}/status-history")
    assert [c["new_status"] for c in r.json["status_changes"]] == ["shipped"]


def test_create_order_route(admin_client, seeded):
    r = admin_client.post("/orders/", json={
        "lines": [{"product_id": seeded["product_id"], "qty": 12}],
        "due_date": "2026-12-01",
        "priority": "high",
    })
    assert r.status_code == 201
    assert r.json["order"]["target_pcs"] == 12
    assert r.json["order"]["due_date"] == "2026-12-01"

    r = admin_client.post("/orders/", json={"lines": "nope"})
    assert r.status_code == 400

    r = admin_client.post("/orders/", data="[1, 2]", content_type="application/json")
    assert r.status_code == 400


def test_public_link_flow(admin_client, client, seeded, session):
    oid = seeded["order_id"]
    r = admin_client.post(f"/orders/{oid}/links", json={})
    assert r.status_code == 201
    token = r.json["link"]["token"]

    admin_client.post("/auth/logout")

    r = client.get(f"/public/order-links/{token}")
    assert r.status_code == 200
    assert r.json["order"]["order_number"] == "ORD-TEST-1"
    assert r.json["summary"]["completed_pieces"] == 40

    r = client.post(f"/public/order-links/{token}/progress", json={"pieces_finished": 5})
    assert r.status_code == 400

    r = client.post(f"/public/order-links/{token}/progress", json={"pieces_finished": 5, "tailor_name": "Budi"})
    assert r.status_code == 201
    report = session.query(ProgressReport).one()
    assert report.tailor_name == "Budi"
    assert report.user_id is None
    assert report.order_link_id is not None

    r = client.get("/public/order-links/does-not-exist")
    assert r.status_code == 404


def test_public_expired_link_is_gone(client, seeded, session):
    link = OrderLink(
        order_id=seeded["order_id"],
        token="e" * 64,
        expire_at=datetime.utcnow() - timedelta(days=1),
        is_active=True,
    )
    session.add(link)
    session.commit()

    r = client.post(f"/public/order-links/{link.token}/progress", json={"pieces_finished": 1, "tailor_name": "X"})
    assert r.status_code == 410
    assert session.get(Order, seeded["order_id"]).completed_pcs == 40


def test_inventory_routes(admin_client, seeded):
    r = admin_client.post("/inventory/materials", json={"name": "Silk", "qty_on_hand": 3, "safety_stock": 10})
    assert r.status_code == 201
    silk_id = r.json["material"]["id"]

    r = admin_client.post(f"/inventory/materials/{silk_id}/movements", json={"movement_type": "OUT", "qty": 5})
    assert r.status_code == 400

    r = admin_client.get("/inventory/restock-alerts")
    assert [a["material_id"] for a in r.json["alerts"]] == [silk_id]
    assert r.json["alerts"][0]["priority"] == "high"

    r = admin_client.get("/inventory/movements/summary")
    assert r.status_code == 200

    r = admin_client.get("/inventory/consistency")
    assert r.json["inconsistencies"] == 0


def test_dashboard(admin_client, seeded):
    r = admin_client.get("/dashboard/")
    assert r.status_code == 200
    assert r.json["orders_by_status"]["processing"] == 1
    assert r.json["total_completed_pcs"] == 40


def test_me_returns_session_user(admin_client, client):
    r = admin_client.get("/auth/me")
    assert r.status_code == 200
    assert r.json["user"]["username"] == "admin"

    admin_client.post("/auth/logout")
    assert client.get("/auth/me").status_code == 401


def test_contact_type_is_checked(admin_client):
    r = admin_client.post("/contacts/", json={"name": "Toko Kain Jaya", "contact_type": "Supplier"})
    assert r.status_code == 201

    r = admin_client.post("/contacts/", json={"name": "Nobody", "contact_type": "robot"})
    assert r.status_code == 400
    assert "tailor" in r.json["details"]["allowed"]


def test_purchase_routes(admin_client, seeded):
    mid = seeded["material_id"]
    r = admin_client.post("/inventory/purchases", json={"material_id": mid, "quantity": 50, "invoice_number": "INV-9"})
    assert r.status_code == 201
    pid = r.json["purchase"]["id"]

    r = admin_client.post(f"/inventory/purchases/{pid}/status", json={"status": "received"})
    assert r.status_code == 200
    assert r.json["purchase"]["movement_id"] is not None
    assert admin_client.get(f"/inventory/materials/{mid}").json["material"]["qty_on_hand"] == 550.0

    r = admin_client.post(f"/inventory/purchases/{pid}/status", json={"status": "received"})
    assert r.status_code == 400

    r = admin_client.get("/inventory/purchases?status=received")
    assert [p["id"] for p in r.json["purchases"]] == [pid]


def test_public_remaining_fabric(admin_client, client, seeded, session):
    oid = seeded["order_id"]
    token = admin_client.post(f"/orders/{oid}/links", json={}).json["link"]["token"]

    body = {"material_id": seeded["material_id"], "qty_remaining": 2.5, "tailor_name": "Budi"}
    r = client.post(f"/public/order-links/{token}/remaining-fabric", json=body)
    assert r.status_code == 400

    r = admin_client.post(f"/orders/{oid}/status", json={"status": "completed"})
    assert r.status_code == 200
    admin_client.post("/auth/logout")

    r = client.post(f"/public/order-links/{token}/remaining-fabric", json={**body, "tailor_name": ""})
    assert r.status_code == 400

    r = client.post(f"/public/order-links/{token}/remaining-fabric", json=body)
    assert r.status_code == 201
    assert r.json["remaining_fabric"]["unit"] == "m"
    leftover = session.query(RemainingFabric).one()
    assert leftover.tailor_name == "Budi"
    assert leftover.order_link_id is not None

    login(admin_client)
    r = admin_client.get(f"/orders/{oid}/remaining-fabric")
    assert [f["qty_remaining"] for f in r.json["remaining_fabrics"]] == [2.5]
