# File path: modules/orders/services/order_service.py
# V1 create/update/archive orders
# V2 completion summary (per line + order totals)
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func

from database.models import Contact, Order, OrderProduct, Product, User
from modules.shared.actors import Actor, actor_user_id
from modules.shared.errors import NotFoundError, ValidationError
from modules.shared.parsing import positive_int
from modules.shared.services.transaction import lock_one, run_in_transaction
from modules.shared.status import STATUS_COMPLETED, STATUS_CREATED

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("priority", "due_date", "description", "customer_note", "tailor_id", "tailor_contact_id")


def next_order_number(session) -> str:
    # ORD-YYYY-000001 style using max(id)
    year = datetime.utcnow().year
    last_id = session.query(func.max(Order.id)).scalar() or 0
    return f"ORD-{year}-{last_id + 1:06d}"


def get_order(session, order_id: int, active_only: bool = False) -> Order:
    order = session.get(Order, order_id)
    if order is None or (active_only and not order.is_active):
        raise NotFoundError(f"Order {order_id} not found.")
    return order


def _clean_lines(session, lines: Iterable[Dict]) -> List[tuple]:
    cleaned = []
    seen = set()
    for raw in lines or []:
        product_id = raw.get("product_id")
        qty = positive_int(raw.get("qty"), "Line quantity")

        product = session.get(Product, product_id) if product_id is not None else None
        if product is None or not product.is_active:
            raise NotFoundError(f"Product {product_id} not found.")
        if product.id in seen:
            raise ValidationError(f"Product {product.code} appears on more than one line.")
        seen.add(product.id)
        cleaned.append((product, qty))

    if not cleaned:
        raise ValidationError("Add at least one product line.")
    return cleaned


def _check_assignees(session, tailor_id, tailor_contact_id):
    if tailor_id is not None and session.get(User, tailor_id) is None:
        raise NotFoundError(f"User {tailor_id} not found.")
    if tailor_contact_id is not None and session.get(Contact, tailor_contact_id) is None:
        raise NotFoundError(f"Contact {tailor_contact_id} not found.")


def _create_order(session, lines, actor, order_number, target_pcs, priority, due_date,
                  tailor_id, tailor_contact_id, description, customer_note):
    cleaned = _clean_lines(session, lines)
    line_total = sum(qty for _, qty in cleaned)

    if target_pcs is None:
        target_pcs = line_total
    else:
        target_pcs = positive_int(target_pcs, "Target pieces")
        if target_pcs > line_total:
            raise ValidationError(
                f"Target pieces ({target_pcs}) cannot exceed the line total ({line_total}).",
            )

    order_number = (order_number or "").strip() or next_order_number(session)
    if session.query(Order.id).filter(Order.order_number == order_number).first():
        raise ValidationError(f"Order number {order_number} already exists.")

    _check_assignees(session, tailor_id, tailor_contact_id)

    order = Order(
        order_number=order_number,
        status=STATUS_CREATED,
        target_pcs=target_pcs,
        completed_pcs=0,
        priority=(priority or "normal").strip().lower(),
        due_date=due_date,
        description=(description or "").strip() or None,
        customer_note=(customer_note or "").strip() or None,
        tailor_id=tailor_id,
        tailor_contact_id=tailor_contact_id,
        created_by=actor_user_id(actor),
    )
    for product, qty in cleaned:
        order.lines.append(OrderProduct(product=product, qty=qty))

    session.add(order)
    session.flush()
    return order


def create_order(
    session,
    lines: Iterable[Dict],
    actor: Optional[Actor] = None,
    order_number: Optional[str] = None,
    target_pcs: Optional[int] = None,
    priority: str = "normal",
    due_date=None,
    tailor_id: Optional[int] = None,
    tailor_contact_id: Optional[int] = None,
    description: Optional[str] = None,
    customer_note: Optional[str] = None,
) -> Order:
    order = run_in_transaction(
        session,
        _create_order,
        list(lines or []),
        actor,
        order_number,
        target_pcs,
        priority,
        due_date,
        tailor_id,
        tailor_contact_id,
        description,
        customer_note,
    )
    logger.info("Order %s created with %d line(s), target %d pcs", order.order_number, len(order.lines), order.target_pcs)
    return order


def _update_order(session, order_id, changes):
    order = lock_one(session, Order, order_id)
    if order is None or not order.is_active:
        raise NotFoundError(f"Order {order_id} not found.")

    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}.")

    _check_assignees(session, changes.get("tailor_id"), changes.get("tailor_contact_id"))

    for key, value in changes.items():
        if isinstance(value, str):
            value = value.strip() or None
        if key == "priority":
            value = (value or "normal").lower()
        setattr(order, key, value)

    session.flush()
    return order


def update_order(session, order_id: int, **changes) -> Order:
    return run_in_transaction(session, _update_order, order_id, changes)


def _archive_order(session, order_id):
    order = lock_one(session, Order, order_id)
    if order is None or not order.is_active:
        raise NotFoundError(f"Order {order_id} not found.")
    order.is_active = False
    for link in order.links:
        link.is_active = False
    session.flush()
    return order


def archive_order(session, order_id: int) -> Order:
    """
    Soft delete; progress history and movements stay.
    """
    order = run_in_transaction(session, _archive_order, order_id)
    logger.info("Order %s archived", order.order_number)
    return order


def list_orders(session, status: Optional[str] = None, include_inactive: bool = False, search: Optional[str] = None):
    q = session.query(Order)
    if not include_inactive:
        q = q.filter(Order.is_active == True)  # noqa: E712
    if status:
        q = q.filter(Order.status == status.strip().lower())
    if search:
        q = q.filter(Order.order_number.ilike(f"%{search.strip()}%"))
    return q.order_by(Order.id.desc()).all()


def get_order_completion_summary(session, order_id: int) -> Dict[str, object]:
    order = get_order(session, order_id)

    products = []
    total_pieces = 0
    completed_pieces = 0
    completed_lines = 0

    for line in order.lines:
        products.append(line.to_dict())
        total_pieces += int(line.qty or 0)
        completed_pieces += int(line.completed_qty or 0)
        if line.is_completed:
            completed_lines += 1

    pct = round(completed_pieces * 100.0 / total_pieces) if total_pieces else 0

    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "status": order.status,
        "total_products": len(order.lines),
        "completed_products": completed_lines,
        "in_progress_products": len(order.lines) - completed_lines,
        "total_pieces": total_pieces,
        "completed_pieces": completed_pieces,
        "remaining_pieces": max(0, total_pieces - completed_pieces),
        "target_pcs": int(order.target_pcs or 0),
        "completed_pcs": int(order.completed_pcs or 0),
        "order_completion_percentage": pct,
        "is_order_complete": bool(
            order.status == STATUS_COMPLETED
            or (order.target_pcs and order.completed_pcs >= order.target_pcs)
        ),
        "products": products,
        "incomplete_products": [p for p in products if not p["is_completed"]],
    }
