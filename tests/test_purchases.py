import pytest

from database.models import Material, MaterialMovement, PurchaseLog
from modules.inventory.services.purchase_service import (
    create_purchase_log,
    list_purchase_logs,
    update_purchase_status,
)
from modules.inventory.services.stock_ledger_service import post_material_movement
from modules.shared.actors import UserActor
from modules.shared.errors import NotFoundError, ValidationError


def _on_hand(session, material_id):
    session.expire_all()
    return session.get(Material, material_id).qty_on_hand


def _purchase_movements(session):
    return (
        session.query(MaterialMovement)
        .filter(MaterialMovement.movement_source == "purchase")
        .order_by(MaterialMovement.id)
        .all()
    )


def test_pending_purchase_does_not_touch_stock(session, seeded, admin):
    purchase = create_purchase_log(session, {
        "material_id": seeded["material_id"],
        "quantity": "120",
        "price_per_unit": 25000,
        "supplier": "Toko Kain Jaya",
        "invoice_number": "INV-001",
    }, actor=UserActor(admin.id))

    assert purchase.status == "pending"
    assert purchase.unit == "m"
    assert purchase.total_cost == pytest.approx(3000000.0)
    assert purchase.created_by == admin.id
    assert purchase.movement_id is None
    assert _on_hand(session, seeded["material_id"]) == pytest.approx(500.0)
    assert _purchase_movements(session) == []


def test_receiving_posts_an_in_movement(session, seeded, admin):
    purchase = create_purchase_log(session, {
        "material_id": seeded["material_id"], "quantity": 120, "invoice_number": "INV-002", "price_per_unit": 10,
    })

    update_purchase_status(session, purchase.id, "received", actor=UserActor(admin.id))

    assert _on_hand(session, seeded["material_id"]) == pytest.approx(620.0)
    purchase = session.get(PurchaseLog, purchase.id)
    movement = purchase.movement
    assert purchase.status == "received"
    assert movement.movement_type == "IN"
    assert movement.qty == pytest.approx(120.0)
    assert movement.reference_number == "INV-002"
    assert movement.unit_price == pytest.approx(10.0)
    assert movement.user_id == admin.id


def test_received_quantity_overrides_ordered_quantity(session, seeded):
    purchase = create_purchase_log(session, {"material_id": seeded["material_id"], "quantity": 100})
    update_purchase_status(session, purchase.id, "received", received_quantity="95.5")

    assert _on_hand(session, seeded["material_id"]) == pytest.approx(595.5)
    assert session.get(PurchaseLog, purchase.id).received_quantity == pytest.approx(95.5)


def test_created_as_received_posts_immediately(session, seeded):
    purchase = create_purchase_log(session, {
        "material_id": seeded["material_id"], "quantity": 30, "status": "Received",
    })

    assert purchase.status == "received"
    assert purchase.movement_id is not None
    assert _on_hand(session, seeded["material_id"]) == pytest.approx(530.0)


def test_leaving_received_reverses_the_receipt(session, seeded):
    purchase = create_purchase_log(session, {"material_id": seeded["material_id"], "quantity": 40, "status": "received"})
    receipt_id = purchase.movement_id

    update_purchase_status(session, purchase.id, "cancelled")

    assert _on_hand(session, seeded["material_id"]) == pytest.approx(500.0)
    purchase = session.get(PurchaseLog, purchase.id)
    assert purchase.status == "cancelled"
    assert purchase.movement_id is None

    movements = _purchase_movements(session)
    assert [m.movement_type for m in movements] == ["IN", "OUT"]
    assert movements[0].id == receipt_id
    assert movements[1].qty == pytest.approx(40.0)
    assert f"purchase #{purchase.id}" in movements[1].notes

    # and back again
    update_purchase_status(session, purchase.id, "received")
    assert _on_hand(session, seeded["material_id"]) == pytest.approx(540.0)
    assert len(_purchase_movements(session)) == 3


def test_reversal_blocked_when_fabric_already_used(session, seeded):
    purchase = create_purchase_log(session, {"material_id": seeded["material_id"], "quantity": 40, "status": "received"})
    post_material_movement(session, seeded["material_id"], "OUT", 520)

    with pytest.raises(ValidationError) as exc:
        update_purchase_status(session, purchase.id, "pending")
    assert "Insufficient" in exc.value.message

    assert _on_hand(session, seeded["material_id"]) == pytest.approx(20.0)
    purchase = session.get(PurchaseLog, purchase.id)
    assert purchase.status == "received"
    assert purchase.movement_id is not None


def test_purchase_validation(session, seeded):
    with pytest.raises(ValidationError):
        create_purchase_log(session, {"material_id": seeded["material_id"], "quantity": 0})
    with pytest.raises(ValidationError):
        create_purchase_log(session, {"material_id": seeded["material_id"], "quantity": 5, "status": "lost"})
    with pytest.raises(ValidationError):
        create_purchase_log(session, {"quantity": 5})
    with pytest.raises(NotFoundError):
        create_purchase_log(session, {"material_id": 9999, "quantity": 5})

    purchase = create_purchase_log(session, {"material_id": seeded["material_id"], "quantity": 5})
    with pytest.raises(ValidationError):
        update_purchase_status(session, purchase.id, "pending")
    with pytest.raises(NotFoundError):
        update_purchase_status(session, 9999, "received")

    assert session.query(PurchaseLog).count() == 1


def test_list_purchase_logs_filters(session, seeded):
    create_purchase_log(session, {"material_id": seeded["material_id"], "quantity": 5, "supplier": "Toko Kain Jaya"})
    create_purchase_log(session, {"material_id": seeded["material_id"], "quantity": 7, "supplier": "Other", "status": "received"})

    assert len(list_purchase_logs(session)) == 2
    assert [p.quantity for p in list_purchase_logs(session, status="received")] == [7.0]
    assert [p.quantity for p in list_purchase_logs(session, supplier="kain")] == [5.0]
