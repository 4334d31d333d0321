from datetime import datetime

import pytest

from database.models import Order, Product, StatusChange
from modules.orders.services.order_service import (
    archive_order,
    create_order,
    get_order_completion_summary,
    next_order_number,
    update_order,
)
from modules.orders.services.order_status_service import change_order_status, list_status_history
from modules.orders.services.fulfillment_service import record_progress
from modules.shared.actors import UserActor
from modules.shared.errors import NotFoundError, ValidationError


@pytest.fixture()
def products(session):
    shirt = Product(name="Shirt", code="P-SHIRT")
    dress = Product(name="Dress", code="P-DRESS")
    session.add_all([shirt, dress])
    session.commit()
    return shirt, dress


def test_create_order_numbers_and_defaults(session, products, admin):
    shirt, dress = products
    order = create_order(
        session,
        [{"product_id": shirt.id, "qty": 30}, {"product_id": dress.id, "qty": "20"}],
        actor=UserActor(admin.id),
    )

    assert order.order_number == f"ORD-{datetime.utcnow().year}-000001"
    assert order.status == "created"
    assert order.target_pcs == 50
    assert order.completed_pcs == 0
    assert order.created_by == admin.id
    assert [l.qty for l in order.lines] == [30, 20]
    assert next_order_number(session).endswith("-000002")


def test_create_order_validation(session, products):
    shirt, dress = products
    with pytest.raises(ValidationError):
        create_order(session, [])
    with pytest.raises(ValidationError):
        create_order(session, [{"product_id": shirt.id, "qty": 0}])
    with pytest.raises(NotFoundError):
        create_order(session, [{"product_id": 999, "qty": 1}])
    with pytest.raises(ValidationError):
        create_order(session, [{"product_id": shirt.id, "qty": 1}, {"product_id": shirt.id, "qty": 2}])
    with pytest.raises(ValidationError):
        create_order(session, [{"product_id": shirt.id, "qty": 5}], target_pcs=6)

    create_order(session, [{"product_id": dress.id, "qty": 5}], order_number="PO-77")
    with pytest.raises(ValidationError):
        create_order(session, [{"product_id": dress.id, "qty": 5}], order_number="PO-77")
    assert session.query(Order).count() == 1


def test_change_status_appends_history(session, seeded, admin):
    change = change_order_status(session, seeded["order_id"], " Shipped ", actor=UserActor(admin.id), note="DHL")
    assert change.old_status == "processing"
    assert change.new_status == "shipped"
    assert change.changed_by == admin.id

    # permissive: backwards moves are allowed
    change_order_status(session, seeded["order_id"], "confirmed")

    history = list_status_history(session, seeded["order_id"])
    assert [(h.old_status, h.new_status) for h in history] == [
        ("processing", "shipped"),
        ("shipped", "confirmed"),
    ]
    assert session.get(Order, seeded["order_id"]).status == "confirmed"


def test_change_status_rejects_unknown_and_same(session, seeded):
    with pytest.raises(ValidationError):
        change_order_status(session, seeded["order_id"], "lost")
    with pytest.raises(ValidationError):
        change_order_status(session, seeded["order_id"], "processing")
    with pytest.raises(NotFoundError):
        change_order_status(session, 4242, "shipped")
    assert session.query(StatusChange).count() == 0


def test_completion_summary(session, seeded):
    record_progress(session, seeded["order_id"], 10)
    summary = get_order_completion_summary(session, seeded["order_id"])

    assert summary["total_pieces"] == 100
    assert summary["completed_pieces"] == 50
    assert summary["remaining_pieces"] == 50
    assert summary["order_completion_percentage"] == 50
    assert summary["is_order_complete"] is False
    assert summary["products"][0]["remaining_qty"] == 50
    assert len(summary["incomplete_products"]) == 1


def test_update_and_archive(session, seeded):
    order = update_order(session, seeded["order_id"], priority="URGENT", description="  rush  ")
    assert order.priority == "urgent"
    assert order.description == "rush"

    with pytest.raises(ValidationError):
        update_order(session, seeded["order_id"], completed_pcs=100)

    archive_order(session, seeded["order_id"])
    assert session.get(Order, seeded["order_id"]).is_active is False
