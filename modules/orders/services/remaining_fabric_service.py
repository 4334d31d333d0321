# File path: modules/orders/services/remaining_fabric_service.py
# -V1 leftover fabric reported after an order completes goes back into stock
from __future__ import annotations

import logging
from typing import List, Optional

from database.models import Material, Order, RemainingFabric
from modules.inventory.services.stock_ledger_service import apply_material_delta
from modules.orders.services.order_link_service import check_link_still_open
from modules.shared.actors import Actor, actor_display_name, actor_user_id
from modules.shared.errors import NotFoundError, ValidationError
from modules.shared.parsing import optional_int, to_float
from modules.shared.services.transaction import lock_one, run_in_transaction
from modules.shared.status import MOVEMENT_IN, SOURCE_ORDER, STATUS_COMPLETED

logger = logging.getLogger(__name__)


def _record_remaining_fabric(session, order_id, material_id, qty_remaining, reporter, photo_url, note,
                             order_link_id):
    order = lock_one(session, Order, order_id)
    if order is None or not order.is_active:
        raise NotFoundError(f"Order {order_id} not found.")

    if order_link_id is not None:
        check_link_still_open(session, order, order_link_id)

    if order.status != STATUS_COMPLETED:
        raise ValidationError(
            f"Order {order.order_number} is {order.status}; leftover fabric can only be reported once it is completed."
        )

    qty = to_float(qty_remaining, "Remaining quantity")
    if qty is None or qty <= 0:
        raise ValidationError("Remaining quantity must be greater than 0.")

    material_id = optional_int(material_id, "material_id")
    if material_id is None:
        raise ValidationError("material_id is required.")
    material = lock_one(session, Material, material_id)
    if material is None:
        raise NotFoundError(f"Material {material_id} not found.")
    if not material.is_active:
        raise ValidationError(f"Material {material.name} is inactive.")

    user_id = actor_user_id(reporter)
    reporter_name = actor_display_name(reporter)
    who = reporter_name or (f"user {user_id}" if user_id else "unknown")

    movement = apply_material_delta(
        session,
        material,
        MOVEMENT_IN,
        qty,
        source=SOURCE_ORDER,
        user_id=user_id,
        order_id=order.id,
        note=f"Leftover from {order.order_number} reported by {who}",
    )
    session.flush()

    leftover = RemainingFabric(
        material_id=material.id,
        order_id=order.id,
        order_link_id=order_link_id,
        user_id=user_id,
        movement_id=movement.id,
        qty_remaining=movement.qty,
        photo_url=(photo_url or "").strip() or None,
        tailor_name=reporter_name,
        note=(note or "").strip() or None,
    )
    session.add(leftover)
    session.flush()
    return leftover


def record_remaining_fabric(
    session,
    order_id: int,
    material_id,
    qty_remaining,
    reporter: Optional[Actor] = None,
    photo_url: Optional[str] = None,
    note: Optional[str] = None,
    order_link_id: Optional[int] = None,
) -> RemainingFabric:
    """
    Posts an IN movement for the returned fabric and keeps the report.
    Only completed orders accept leftovers. Commits.
    """
    leftover = run_in_transaction(
        session, _record_remaining_fabric,
        order_id, material_id, qty_remaining, reporter, photo_url, note, order_link_id,
    )
    logger.info(
        "Leftover %g of material %s returned from order %s (movement %s)",
        leftover.qty_remaining, leftover.material_id, leftover.order_id, leftover.movement_id,
    )
    return leftover


def list_remaining_fabrics(session, order_id=None, material_id=None) -> List[RemainingFabric]:
    q = session.query(RemainingFabric)
    if order_id:
        q = q.filter(RemainingFabric.order_id == order_id)
    if material_id:
        q = q.filter(RemainingFabric.material_id == material_id)
    return q.order_by(RemainingFabric.created_at.desc(), RemainingFabric.id.desc()).all()
