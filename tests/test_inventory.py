import pytest

from database.models import Material, MaterialMovement, ProductMaterial
from modules.inventory.services.bom_service import explode_consumption, remove_product_material, set_product_material
from modules.inventory.services.catalog_service import add_product_photo, create_material, remove_product_photo, update_material
from modules.inventory.services.restock_service import get_restock_alerts, restock_priority, validate_inventory_consistency
from modules.inventory.services.stock_ledger_service import get_movement_summary, post_material_movement
from modules.orders.services.fulfillment_service import record_progress
from modules.shared.errors import NotFoundError, ValidationError


def test_manual_movements_update_stock_and_ledger(session, seeded, admin):
    mid = seeded["material_id"]
    m_in = post_material_movement(session, mid, "in", 25, source="purchase", reference_number="INV-9", unit_price=3.5)
    assert m_in.movement_type == "IN"
    assert m_in.qty_after == pytest.approx(525.0)

    m_out = post_material_movement(session, mid, "OUT", 5.5)
    assert m_out.qty_after == pytest.approx(519.5)

    session.expire_all()
    assert session.get(Material, mid).qty_on_hand == pytest.approx(519.5)


def test_movement_validation(session, seeded):
    mid = seeded["material_id"]
    with pytest.raises(ValidationError):
        post_material_movement(session, mid, "OUT", 501)
    with pytest.raises(ValidationError):
        post_material_movement(session, mid, "SIDEWAYS", 1)
    with pytest.raises(ValidationError):
        post_material_movement(session, mid, "IN", 0)
    with pytest.raises(ValidationError):
        post_material_movement(session, mid, "IN", 1, source="gift")
    with pytest.raises(NotFoundError):
        post_material_movement(session, 777, "IN", 1)

    session.expire_all()
    assert session.get(Material, mid).qty_on_hand == pytest.approx(500.0)
    assert session.query(MaterialMovement).count() == 1


@pytest.mark.parametrize(
    "current,safety,expected",
    [(0, 50, "critical"), (20, 50, "high"), (25, 50, "high"), (40, 50, "medium"), (50, 50, "low")],
)
def test_restock_priority(current, safety, expected):
    assert restock_priority(current, safety) == expected


def test_restock_alerts(session, seeded):
    session.add(Material(name="Lining", unit="m", qty_on_hand=4.0, safety_stock=10.0))
    session.add(Material(name="Zippers", unit="pcs", qty_on_hand=0.0, safety_stock=20.0))
    session.add(Material(name="Buttons", unit="pcs", qty_on_hand=300.0, safety_stock=20.0))
    session.commit()

    alerts = get_restock_alerts(session)
    assert [(a["material_name"], a["priority"]) for a in alerts] == [("Zippers", "critical"), ("Lining", "high")]
    assert alerts[1]["shortfall"] == pytest.approx(6.0)


def test_movement_summary_and_consistency(session, seeded):
    record_progress(session, seeded["order_id"], 10)
    post_material_movement(session, seeded["material_id"], "IN", 30, source="purchase")

    summary = {(r["movement_type"], r["movement_source"]): r for r in get_movement_summary(session)}
    assert summary[("OUT", "production")]["count"] == 1
    assert summary[("OUT", "production")]["total_qty"] == pytest.approx(20.0)
    assert summary[("IN", "purchase")]["total_qty"] == pytest.approx(30.0)

    only_production = get_movement_summary(session, source="production")
    assert len(only_production) == 1

    report = validate_inventory_consistency(session)
    assert report["inconsistencies"] == 0

    material = session.get(Material, seeded["material_id"])
    material.qty_on_hand = 1.0
    session.commit()
    report = validate_inventory_consistency(session)
    assert report["inconsistencies"] == 1
    assert report["details"][0]["ledger_qty"] == pytest.approx(510.0)


def test_bom_upsert_remove_and_explode(session, seeded):
    pid, mid = seeded["product_id"], seeded["material_id"]
    set_product_material(session, pid, mid, 1.5)
    session.commit()
    assert session.query(ProductMaterial).filter_by(product_id=pid).count() == 1
    assert explode_consumption(session, [(pid, 4), (pid, 2)]) == {mid: pytest.approx(9.0)}

    with pytest.raises(ValidationError):
        set_product_material(session, pid, mid, -1)
    session.rollback()

    remove_product_material(session, pid, mid)
    session.commit()
    assert explode_consumption(session, [(pid, 4)]) == {}
    with pytest.raises(NotFoundError):
        remove_product_material(session, pid, mid)


def test_create_material_writes_opening_movement(session, admin):
    material = create_material(session, {"name": "Linen", "qty_on_hand": "12.5", "safety_stock": 3}, actor=None)
    movements = session.query(MaterialMovement).filter_by(material_id=material.id).all()
    assert material.qty_on_hand == pytest.approx(12.5)
    assert len(movements) == 1
    assert movements[0].movement_source == "adjustment"

    with pytest.raises(ValidationError):
        update_material(session, material.id, {"qty_on_hand": 99})


def test_primary_photo_moves_when_removed(session, seeded):
    pid = seeded["product_id"]
    first = add_product_photo(session, pid, "https://img.example/1.jpg")
    second = add_product_photo(session, pid, "https://img.example/2.jpg", is_primary=True)

    session.expire_all()
    assert first.is_primary is False
    assert second.is_primary is True

    remove_product_photo(session, pid, second.id)
    session.expire_all()
    assert first.is_primary is True
