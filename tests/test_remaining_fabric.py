import pytest

from database.models import Material, MaterialMovement, Order, RemainingFabric
from modules.orders.services.order_link_service import create_order_link, deactivate_order_link
from modules.orders.services.remaining_fabric_service import list_remaining_fabrics, record_remaining_fabric
from modules.shared.actors import AnonymousActor, UserActor
from modules.shared.errors import ExpiredError, NotFoundError, ValidationError


def _complete(session, order_id):
    order = session.get(Order, order_id)
    order.status = "completed"
    session.commit()


def test_leftover_goes_back_into_stock(session, seeded, tailor):
    _complete(session, seeded["order_id"])

    leftover = record_remaining_fabric(
        session, seeded["order_id"], seeded["material_id"], "3.5",
        reporter=UserActor(tailor.id, "Sari"), note="two offcuts",
    )

    session.expire_all()
    assert session.get(Material, seeded["material_id"]).qty_on_hand == pytest.approx(503.5)
    movement = session.get(MaterialMovement, leftover.movement_id)
    assert movement.movement_type == "IN"
    assert movement.movement_source == "order"
    assert movement.order_id == seeded["order_id"]
    assert "ORD-TEST-1" in movement.notes and "Sari" in movement.notes

    assert leftover.qty_remaining == pytest.approx(3.5)
    assert leftover.user_id == tailor.id
    assert [r.id for r in list_remaining_fabrics(session, order_id=seeded["order_id"])] == [leftover.id]


def test_leftover_only_after_completion(session, seeded):
    with pytest.raises(ValidationError):
        record_remaining_fabric(session, seeded["order_id"], seeded["material_id"], 2)

    assert session.query(RemainingFabric).count() == 0
    session.expire_all()
    assert session.get(Material, seeded["material_id"]).qty_on_hand == pytest.approx(500.0)


@pytest.mark.parametrize("qty", [0, -1, "", "a lot"])
def test_leftover_quantity_must_be_positive(session, seeded, qty):
    _complete(session, seeded["order_id"])
    with pytest.raises(ValidationError):
        record_remaining_fabric(session, seeded["order_id"], seeded["material_id"], qty)
    assert session.query(RemainingFabric).count() == 0


def test_leftover_unknown_material_or_order(session, seeded):
    _complete(session, seeded["order_id"])
    with pytest.raises(NotFoundError):
        record_remaining_fabric(session, seeded["order_id"], 9999, 1)
    with pytest.raises(NotFoundError):
        record_remaining_fabric(session, 9999, seeded["material_id"], 1)


def test_leftover_through_link_checks_the_link(session, seeded):
    link = create_order_link(session, seeded["order_id"])
    _complete(session, seeded["order_id"])

    leftover = record_remaining_fabric(
        session, seeded["order_id"], seeded["material_id"], 1.25,
        reporter=AnonymousActor("Budi"), order_link_id=link.id,
    )
    assert leftover.tailor_name == "Budi"
    assert leftover.user_id is None
    assert leftover.order_link_id == link.id

    deactivate_order_link(session, link.id)
    with pytest.raises(ExpiredError):
        record_remaining_fabric(
            session, seeded["order_id"], seeded["material_id"], 1,
            reporter=AnonymousActor("Budi"), order_link_id=link.id,
        )
    assert session.query(RemainingFabric).count() == 1
