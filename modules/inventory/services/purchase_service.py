# File path: modules/inventory/services/purchase_service.py
# -V1 Purchase logs; receipt posts to the stock ledger
# -V2 leaving 'received' reverses the receipt
import logging
from datetime import date
from typing import List, Optional

from database.models import Material, PurchaseLog
from modules.inventory.services.stock_ledger_service import apply_material_delta
from modules.shared.actors import actor_user_id
from modules.shared.errors import NotFoundError, ValidationError
from modules.shared.parsing import optional_int, parse_date, to_float
from modules.shared.services.transaction import lock_one, run_in_transaction
from modules.shared.status import (
    MOVEMENT_IN,
    MOVEMENT_OUT,
    PURCHASE_PENDING,
    PURCHASE_RECEIVED,
    PURCHASE_STATUSES,
    SOURCE_PURCHASE,
)

logger = logging.getLogger(__name__)


def normalize_purchase_status(value) -> str:
    status = (value or "").strip().lower()
    if status not in PURCHASE_STATUSES:
        raise ValidationError(f"Invalid purchase status: {value!r}.", allowed=list(PURCHASE_STATUSES))
    return status


def _lock_material(session, material_id):
    material = lock_one(session, Material, material_id)
    if material is None:
        raise NotFoundError(f"Material {material_id} not found.")
    return material


def _post_receipt(session, purchase: PurchaseLog, material: Material, user_id):
    qty = purchase.received_quantity or purchase.quantity
    movement = apply_material_delta(
        session,
        material,
        MOVEMENT_IN,
        qty,
        source=SOURCE_PURCHASE,
        user_id=user_id,
        note=f"Automatic stock in from purchase #{purchase.id}" + (f": {purchase.supplier}" if purchase.supplier else ""),
        reference_number=purchase.invoice_number,
        unit_price=purchase.price_per_unit,
    )
    session.flush()
    purchase.movement_id = movement.id
    return movement


def _reverse_receipt(session, purchase: PurchaseLog, material: Material, user_id):
    """
    The ledger is append-only: a receipt is undone by an equal OUT movement.
    Fails with ValidationError if the received fabric was already used.
    """
    receipt = purchase.movement
    if receipt is None:
        return None
    movement = apply_material_delta(
        session,
        material,
        MOVEMENT_OUT,
        receipt.qty,
        source=SOURCE_PURCHASE,
        user_id=user_id,
        note=f"Reversal of purchase #{purchase.id} receipt (movement {receipt.id})",
        reference_number=purchase.invoice_number,
        unit_price=purchase.price_per_unit,
    )
    purchase.movement_id = None
    return movement


def _create_purchase_log(session, data, actor):
    material_id = optional_int(data.get("material_id"), "material_id")
    if material_id is None:
        raise ValidationError("material_id is required.")
    material = _lock_material(session, material_id)
    if not material.is_active:
        raise ValidationError(f"Material {material.name} is inactive.")

    quantity = to_float(data.get("quantity"), "Quantity")
    if quantity is None or quantity <= 0:
        raise ValidationError("Quantity must be greater than 0.")

    price = to_float(data.get("price_per_unit"), "Price per unit")
    if price is not None and price < 0:
        raise ValidationError("Price per unit cannot be negative.")

    received = to_float(data.get("received_quantity"), "Received quantity")
    if received is not None and received <= 0:
        raise ValidationError("Received quantity must be greater than 0.")

    status = normalize_purchase_status(data.get("status") or PURCHASE_PENDING)

    purchase = PurchaseLog(
        material_id=material.id,
        purchase_date=parse_date(data.get("purchase_date"), "Purchase date") or date.today(),
        quantity=quantity,
        received_quantity=received,
        unit=(data.get("unit") or "").strip() or material.unit,
        supplier=(data.get("supplier") or "").strip() or None,
        price_per_unit=price,
        total_cost=round(quantity * price, 2) if price is not None else None,
        invoice_number=(data.get("invoice_number") or "").strip() or None,
        status=status,
        notes=(data.get("notes") or "").strip() or None,
        created_by=actor_user_id(actor),
    )
    session.add(purchase)
    session.flush()

    if status == PURCHASE_RECEIVED:
        _post_receipt(session, purchase, material, actor_user_id(actor))
        session.flush()
    return purchase


def create_purchase_log(session, data: dict, actor=None) -> PurchaseLog:
    """
    Commits. A purchase created as 'received' posts its receipt immediately.
    """
    purchase = run_in_transaction(session, _create_purchase_log, data, actor)
    logger.info(
        "Purchase %s logged: %g %s of material %s (%s)",
        purchase.id, purchase.quantity, purchase.unit, purchase.material_id, purchase.status,
    )
    return purchase


def _update_purchase_status(session, purchase_id, new_status, actor, received_quantity, note):
    status = normalize_purchase_status(new_status)

    purchase = lock_one(session, PurchaseLog, purchase_id)
    if purchase is None:
        raise NotFoundError(f"Purchase {purchase_id} not found.")
    if purchase.status == status:
        raise ValidationError(f"Purchase #{purchase.id} is already '{status}'.")

    material = _lock_material(session, purchase.material_id)
    user_id = actor_user_id(actor)

    if received_quantity is not None:
        received = to_float(received_quantity, "Received quantity")
        if received is None or received <= 0:
            raise ValidationError("Received quantity must be greater than 0.")
        purchase.received_quantity = received

    movement = None
    if status == PURCHASE_RECEIVED and purchase.movement_id is None:
        movement = _post_receipt(session, purchase, material, user_id)
    elif purchase.status == PURCHASE_RECEIVED and status != PURCHASE_RECEIVED:
        movement = _reverse_receipt(session, purchase, material, user_id)

    purchase.status = status
    if note:
        purchase.notes = note.strip() or purchase.notes
    session.flush()
    return purchase, movement


def update_purchase_status(
    session,
    purchase_id: int,
    new_status: str,
    actor=None,
    received_quantity=None,
    note: Optional[str] = None,
) -> PurchaseLog:
    """
    pending/cancelled -> received: IN movement for received_quantity (or quantity).
    received -> anything else: reversing OUT movement.
    Commits.
    """
    purchase, movement = run_in_transaction(
        session, _update_purchase_status, purchase_id, new_status, actor, received_quantity, note,
    )
    logger.info(
        "Purchase %s -> %s%s",
        purchase.id, purchase.status,
        f" ({movement.movement_type} {movement.qty:g})" if movement is not None else "",
    )
    return purchase


def list_purchase_logs(session, material_id=None, status=None, supplier=None) -> List[PurchaseLog]:
    q = session.query(PurchaseLog)
    if material_id:
        q = q.filter(PurchaseLog.material_id == material_id)
    if status:
        q = q.filter(PurchaseLog.status == status.strip().lower())
    if supplier:
        q = q.filter(PurchaseLog.supplier.ilike(f"%{supplier.strip()}%"))
    return q.order_by(PurchaseLog.purchase_date.desc(), PurchaseLog.id.desc()).all()
