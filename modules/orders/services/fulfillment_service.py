# File path: modules/orders/services/fulfillment_service.py
# V1 record_progress: counters + BOM consumption + auto-complete in one transaction
# V2 finished-goods stock posted when an order auto-completes
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from database.models import (
    Material,
    MaterialMovement,
    Order,
    OrderProduct,
    Product,
    ProgressReport,
    StatusChange,
)
from modules.inventory.services.bom_service import explode_consumption
from modules.inventory.services.stock_ledger_service import apply_material_delta
from modules.orders.services.order_link_service import check_link_still_open
from modules.orders.services.order_status_service import record_status_change
from modules.shared.actors import Actor, actor_display_name, actor_user_id
from modules.shared.errors import NotFoundError, ValidationError
from modules.shared.parsing import positive_int
from modules.shared.services.transaction import lock_many, lock_one, run_in_transaction
from modules.shared.status import (
    AUTO_COMPLETED_NOTE,
    CLOSED_STATUSES,
    MOVEMENT_OUT,
    SOURCE_PRODUCTION,
    STATUS_COMPLETED,
)

logger = logging.getLogger(__name__)


@dataclass
class ProgressResult:
    report: ProgressReport
    order: Order
    lines: List[OrderProduct] = field(default_factory=list)
    movements: List[MaterialMovement] = field(default_factory=list)
    status_change: Optional[StatusChange] = None
    product_stock_updates: List[dict] = field(default_factory=list)

    def to_dict(self):
        return {
            "report": self.report.to_dict(),
            "order": self.order.to_dict(with_lines=False),
            "lines": [l.to_dict() for l in self.lines],
            "material_movements": [m.to_dict() for m in self.movements],
            "status_change": self.status_change.to_dict() if self.status_change else None,
            "product_stock_updates": self.product_stock_updates,
        }


def _allocate(order: Order, product_id: Optional[int], pieces: int) -> List[Tuple[OrderProduct, int]]:
    """
    Decide which line(s) the pieces land on.

    - product_id given: that line only, must have room for all pieces.
    - no product_id: fill incomplete lines in line order.
    """
    if product_id is not None:
        line = next((l for l in order.lines if l.product_id == product_id), None)
        if line is None:
            raise NotFoundError(f"Product {product_id} is not a line of order {order.order_number}.")
        if line.completed_qty + pieces > line.qty:
            raise ValidationError(
                f"Cannot complete {pieces} pieces. Only {line.remaining_qty} pieces remaining for this product.",
                order_product_id=line.id,
                remaining=line.remaining_qty,
            )
        return [(line, pieces)]

    if not order.lines:
        return []

    left = pieces
    allocations = []
    for line in order.lines:
        if left <= 0:
            break
        room = line.remaining_qty
        if room <= 0:
            continue
        take = min(room, left)
        allocations.append((line, take))
        left -= take

    if left > 0:
        remaining = sum(l.remaining_qty for l in order.lines)
        raise ValidationError(
            f"Cannot complete {pieces} pieces. Only {remaining} pieces remaining across the order lines.",
            remaining=remaining,
        )
    return allocations


def _receive_finished_goods(session, order: Order) -> List[dict]:
    """
    Completed order: each line's finished pieces go into product stock.
    """
    qty_by_product = {l.product_id: int(l.completed_qty or 0) for l in order.lines if l.completed_qty}
    products = lock_many(session, Product, qty_by_product.keys())

    updates = []
    for product_id in sorted(qty_by_product):
        product = products[product_id]
        before = int(product.qty_on_hand or 0)
        product.qty_on_hand = before + qty_by_product[product_id]
        updates.append({
            "product_id": product.id,
            "product_name": product.name,
            "previous_stock": before,
            "added_quantity": qty_by_product[product_id],
            "new_stock": product.qty_on_hand,
        })
    return updates


def _record_progress(session, order_id, pieces, reporter, product_id, photo_url, note, order_link_id):
    order = lock_one(session, Order, order_id)
    if order is None or not order.is_active:
        raise NotFoundError(f"Order {order_id} not found.")

    if order_link_id is not None:
        check_link_still_open(session, order, order_link_id)

    if order.status in CLOSED_STATUSES:
        raise ValidationError(f"Order {order.order_number} is {order.status}; progress cannot be added.")

    if order.completed_pcs + pieces > order.target_pcs:
        raise ValidationError(
            f"Cannot report more than remaining pieces. Remaining: {order.remaining_pcs}",
            remaining=order.remaining_pcs,
        )

    allocations = _allocate(order, product_id, pieces)

    consumption = explode_consumption(session, [(line.product_id, pcs) for line, pcs in allocations])
    materials = lock_many(session, Material, consumption.keys())

    now = datetime.utcnow()
    user_id = actor_user_id(reporter)
    reporter_name = actor_display_name(reporter)

    single_line = allocations[0][0] if len(allocations) == 1 else None
    report = ProgressReport(
        order_id=order.id,
        order_product_id=single_line.id if single_line else None,
        product_id=single_line.product_id if single_line else None,
        user_id=user_id,
        order_link_id=order_link_id,
        pcs_finished=pieces,
        photo_url=(photo_url or "").strip() or None,
        tailor_name=reporter_name,
        note=(note or "").strip() or None,
        reported_at=now,
    )
    session.add(report)

    touched = []
    for line, pcs in allocations:
        line.completed_qty = int(line.completed_qty or 0) + pcs
        if line.completed_qty >= line.qty and not line.is_completed:
            line.is_completed = True
            line.completion_date = now
        touched.append(line)

    before = int(order.completed_pcs or 0)
    order.completed_pcs = before + pieces
    reached_target = before < order.target_pcs <= order.completed_pcs

    movements = []
    who = reporter_name or (f"user {user_id}" if user_id else "unknown")
    for material_id in sorted(consumption):
        material = materials.get(material_id)
        if material is None:
            raise NotFoundError(f"Material {material_id} not found.")
        movements.append(apply_material_delta(
            session,
            material,
            MOVEMENT_OUT,
            consumption[material_id],
            source=SOURCE_PRODUCTION,
            user_id=user_id,
            order_id=order.id,
            note=f"Used for {order.order_number}: {pieces} pcs reported by {who}",
        ))

    status_change = None
    stock_updates = []
    if reached_target:
        # finished goods are received once, whatever the status was set to by hand
        stock_updates = _receive_finished_goods(session, order)
        if order.status != STATUS_COMPLETED:
            status_change = record_status_change(
                session, order, STATUS_COMPLETED, changed_by=user_id, note=AUTO_COMPLETED_NOTE,
            )

    session.flush()
    return ProgressResult(
        report=report,
        order=order,
        lines=touched,
        movements=movements,
        status_change=status_change,
        product_stock_updates=stock_updates,
    )


def record_progress(
    session,
    order_id: int,
    pieces_finished,
    reporter: Optional[Actor] = None,
    product_id: Optional[int] = None,
    photo_url: Optional[str] = None,
    note: Optional[str] = None,
    order_link_id: Optional[int] = None,
) -> ProgressResult:
    """
    Apply one progress report atomically:

    1. ProgressReport row
    2. OrderProduct.completed_qty (+ completion flag/date)
    3. Order.completed_pcs
    4. BOM consumption -> Material.qty_on_hand and one OUT movement per material
    5. auto-complete + StatusChange when completed_pcs reaches target_pcs

    Overruns are rejected with ValidationError; nothing is written.
    Commits.
    """
    pieces = positive_int(pieces_finished, "Pieces finished")

    result = run_in_transaction(
        session,
        _record_progress,
        order_id,
        pieces,
        reporter,
        product_id,
        photo_url,
        note,
        order_link_id,
    )

    logger.info(
        "Progress on %s: +%d pcs (%d/%d), %d movement(s)%s",
        result.order.order_number,
        pieces,
        result.order.completed_pcs,
        result.order.target_pcs,
        len(result.movements),
        ", order auto-completed" if result.status_change else "",
    )
    return result


def list_progress_reports(session, order_id: int) -> List[ProgressReport]:
    return (
        session.query(ProgressReport)
        .filter(ProgressReport.order_id == order_id)
        .order_by(ProgressReport.reported_at.desc(), ProgressReport.id.desc())
        .all()
    )
