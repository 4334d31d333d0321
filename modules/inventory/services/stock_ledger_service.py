# File path: modules/inventory/services/stock_ledger_service.py
import logging
from typing import Optional, Dict, List

from sqlalchemy import func

from database.models import Material, MaterialMovement
from modules.shared.actors import actor_user_id
from modules.shared.errors import NotFoundError, ValidationError
from modules.shared.services.transaction import lock_one, run_in_transaction
from modules.shared.status import (
    MOVEMENT_IN,
    MOVEMENT_OUT,
    MOVEMENT_SOURCES,
    MOVEMENT_TYPES,
    SOURCE_MANUAL,
)

logger = logging.getLogger(__name__)

# float slack for BOM multiplies (3 x 1.1 != 3.3)
STOCK_EPSILON = 1e-6
QTY_DECIMALS = 6


def apply_material_delta(
    session,
    material: Material,
    movement_type: str,
    qty: float,
    source: str = SOURCE_MANUAL,
    user_id: Optional[int] = None,
    order_id: Optional[int] = None,
    note: Optional[str] = None,
    reference_number: Optional[str] = None,
    unit_price: Optional[float] = None,
) -> MaterialMovement:
    """
    Move stock on an already-locked Material and write the matching ledger row.
    Does NOT commit.
    """
    movement_type = (movement_type or "").strip().upper()
    source = (source or SOURCE_MANUAL).strip().lower()

    if movement_type not in MOVEMENT_TYPES:
        raise ValidationError(f"Invalid movement type: {movement_type!r}. Use IN or OUT.")
    if source not in MOVEMENT_SOURCES:
        raise ValidationError(f"Invalid movement source: {source!r}.")

    try:
        qty = float(qty)
    except (TypeError, ValueError):
        raise ValidationError("Quantity must be a number.")

    qty = round(qty, QTY_DECIMALS)
    if qty <= 0:
        raise ValidationError("Quantity must be greater than 0.")

    on_hand = float(material.qty_on_hand or 0.0)
    if movement_type == MOVEMENT_OUT:
        if qty > on_hand + STOCK_EPSILON:
            raise ValidationError(
                f"Insufficient {material.name} stock. Available: {on_hand:g} {material.unit}, "
                f"required: {qty:g} {material.unit}.",
                material_id=material.id,
                available=on_hand,
                required=qty,
            )
        qty_after = on_hand - qty
    else:
        qty_after = on_hand + qty

    qty_after = round(qty_after, QTY_DECIMALS)
    if qty_after < STOCK_EPSILON:
        qty_after = 0.0

    material.qty_on_hand = qty_after

    movement = MaterialMovement(
        material_id=material.id,
        order_id=order_id,
        user_id=user_id,
        qty=qty,
        movement_type=movement_type,
        movement_source=source,
        qty_after=qty_after,
        reference_number=(reference_number or "").strip() or None,
        unit_price=unit_price,
        notes=(note or "").strip() or None,
    )
    session.add(movement)
    return movement


def _post_material_movement(session, material_id, movement_type, qty, actor, source, order_id, note,
                            reference_number, unit_price):
    material = lock_one(session, Material, material_id)
    if material is None:
        raise NotFoundError(f"Material {material_id} not found.")
    if not material.is_active:
        raise ValidationError(f"Material {material.name} is inactive.")

    movement = apply_material_delta(
        session,
        material,
        movement_type,
        qty,
        source=source,
        user_id=actor_user_id(actor),
        order_id=order_id,
        note=note,
        reference_number=reference_number,
        unit_price=unit_price,
    )
    session.flush()
    return movement


def post_material_movement(
    session,
    material_id: int,
    movement_type: str,
    qty: float,
    actor=None,
    source: str = SOURCE_MANUAL,
    order_id: Optional[int] = None,
    note: Optional[str] = None,
    reference_number: Optional[str] = None,
    unit_price: Optional[float] = None,
) -> MaterialMovement:
    """
    Manual stock in/out (purchases received, adjustments, hand-issued fabric).
    Commits.
    """
    movement = run_in_transaction(
        session,
        _post_material_movement,
        material_id,
        movement_type,
        qty,
        actor,
        source,
        order_id,
        note,
        reference_number,
        unit_price,
    )
    logger.info(
        "Material %s %s %g (%s) -> on hand %g",
        material_id, movement.movement_type, movement.qty, movement.movement_source, movement.qty_after,
    )
    return movement


def list_movements(session, material_id=None, order_id=None, movement_type=None, source=None, limit=250):
    q = session.query(MaterialMovement)
    if material_id:
        q = q.filter(MaterialMovement.material_id == material_id)
    if order_id:
        q = q.filter(MaterialMovement.order_id == order_id)
    if movement_type:
        q = q.filter(MaterialMovement.movement_type == movement_type.strip().upper())
    if source:
        q = q.filter(MaterialMovement.movement_source == source.strip().lower())
    return q.order_by(MaterialMovement.created_at.desc(), MaterialMovement.id.desc()).limit(limit).all()


def get_movement_summary(session, material_id=None, source=None) -> List[Dict[str, object]]:
    """
    Count / total qty grouped by (movement_type, movement_source).
    """
    q = session.query(
        MaterialMovement.movement_type,
        MaterialMovement.movement_source,
        func.count(MaterialMovement.id),
        func.coalesce(func.sum(MaterialMovement.qty), 0.0),
    )
    if material_id:
        q = q.filter(MaterialMovement.material_id == material_id)
    if source:
        q = q.filter(MaterialMovement.movement_source == source)

    rows = (
        q.group_by(MaterialMovement.movement_type, MaterialMovement.movement_source)
        .order_by(MaterialMovement.movement_type.asc(), MaterialMovement.movement_source.asc())
        .all()
    )
    return [
        {
            "movement_type": mtype,
            "movement_source": msource,
            "count": int(count or 0),
            "total_qty": float(total or 0.0),
        }
        for mtype, msource, count, total in rows
    ]


def get_net_movement_map(session, material_ids: list) -> Dict[int, float]:
    """
    Returns {material_id: IN - OUT} computed from the ledger.
    """
    if not material_ids:
        return {}

    rows = (
        session.query(
            MaterialMovement.material_id,
            MaterialMovement.movement_type,
            func.coalesce(func.sum(MaterialMovement.qty), 0.0),
        )
        .filter(MaterialMovement.material_id.in_(material_ids))
        .group_by(MaterialMovement.material_id, MaterialMovement.movement_type)
        .all()
    )
    out = {int(mid): 0.0 for mid in material_ids}
    for mid, mtype, total in rows:
        sign = 1.0 if mtype == MOVEMENT_IN else -1.0
        out[int(mid)] += sign * float(total or 0.0)
    return out
