# File path: modules/orders/services/order_status_service.py
from __future__ import annotations

import logging
from typing import List, Optional

from database.models import Order, StatusChange
from modules.shared.actors import Actor, actor_user_id
from modules.shared.errors import NotFoundError, ValidationError
from modules.shared.services.transaction import lock_one, run_in_transaction
from modules.shared.status import ORDER_STATUSES

logger = logging.getLogger(__name__)


def normalize_status(value) -> str:
    status = (value or "").strip().lower()
    if status not in ORDER_STATUSES:
        raise ValidationError(
            f"Invalid status: {value!r}.",
            allowed=list(ORDER_STATUSES),
        )
    return status


def record_status_change(
    session,
    order: Order,
    new_status: str,
    changed_by: Optional[int] = None,
    note: Optional[str] = None,
) -> StatusChange:
    """
    Audit row first, then the status itself. Caller holds the order lock.
    No commit here.
    """
    change = StatusChange(
        order_id=order.id,
        old_status=order.status,
        new_status=new_status,
        changed_by=changed_by,
        note=(note or "").strip() or None,
    )
    session.add(change)
    order.status = new_status
    return change


def _change_order_status(session, order_id, new_status, actor, note):
    status = normalize_status(new_status)

    order = lock_one(session, Order, order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} not found.")

    if order.status == status:
        raise ValidationError(f"Order {order.order_number} is already '{status}'.")

    change = record_status_change(session, order, status, changed_by=actor_user_id(actor), note=note)
    session.flush()
    return change


def change_order_status(
    session,
    order_id: int,
    new_status: str,
    actor: Optional[Actor] = None,
    note: Optional[str] = None,
) -> StatusChange:
    """
    Any status may move to any other status in ORDER_STATUSES.
    Commits.
    """
    change = run_in_transaction(session, _change_order_status, order_id, new_status, actor, note)
    logger.info(
        "Order %s status %s -> %s (by %s)",
        order_id, change.old_status, change.new_status, change.changed_by,
    )
    return change


def list_status_history(session, order_id: int) -> List[StatusChange]:
    return (
        session.query(StatusChange)
        .filter(StatusChange.order_id == order_id)
        .order_by(StatusChange.created_at.asc(), StatusChange.id.asc())
        .all()
    )
