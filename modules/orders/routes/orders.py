# File path: modules/orders/routes/orders.py

from flask import jsonify, request

from database.models import db
from modules.orders.routes import orders_bp
from modules.orders.services.order_service import (
    UPDATABLE_FIELDS,
    archive_order,
    create_order,
    get_order,
    get_order_completion_summary,
    list_orders,
    update_order,
)
from modules.orders.services.order_status_service import change_order_status, list_status_history
from modules.inventory.services.stock_ledger_service import list_movements
from modules.shared.errors import ValidationError
from modules.shared.parsing import json_body, optional_int, parse_date
from modules.user.decorators import admin_required, current_actor, login_required


@orders_bp.route("/", methods=["GET"])
@login_required
def orders_index():
    include_inactive = request.args.get("include_inactive") == "1"
    orders = list_orders(
        db.session,
        status=request.args.get("status"),
        include_inactive=include_inactive,
        search=request.args.get("q"),
    )
    return jsonify({"success": True, "orders": [o.to_dict(with_lines=False) for o in orders]})


@orders_bp.route("/", methods=["POST"])
@login_required
def orders_new():
    data = json_body(request)

    lines = data.get("lines") or data.get("products") or []
    if not isinstance(lines, list):
        raise ValidationError("lines must be a list of {product_id, qty}.")
    for line in lines:
        if not isinstance(line, dict):
            raise ValidationError("lines must be a list of {product_id, qty}.")

    order = create_order(
        db.session,
        lines=[{"product_id": optional_int(l.get("product_id"), "product_id"), "qty": l.get("qty")} for l in lines],
        actor=current_actor(),
        order_number=data.get("order_number"),
        target_pcs=data.get("target_pcs"),
        priority=data.get("priority") or "normal",
        due_date=parse_date(data.get("due_date"), "Due date"),
        tailor_id=optional_int(data.get("tailor_id"), "tailor_id"),
        tailor_contact_id=optional_int(data.get("tailor_contact_id"), "tailor_contact_id"),
        description=data.get("description"),
        customer_note=data.get("customer_note"),
    )
    return jsonify({"success": True, "message": "Order created.", "order": order.to_dict()}), 201


@orders_bp.route("/<int:order_id>", methods=["GET"])
@login_required
def order_detail(order_id):
    order = get_order(db.session, order_id)
    out = order.to_dict()
    out["status_history"] = [c.to_dict() for c in order.status_changes]
    return jsonify({"success": True, "order": out})


@orders_bp.route("/<int:order_id>", methods=["PATCH", "PUT"])
@login_required
def order_update(order_id):
    data = json_body(request)

    changes = {k: data[k] for k in UPDATABLE_FIELDS if k in data}
    if "due_date" in changes:
        changes["due_date"] = parse_date(changes["due_date"], "Due date")
    for key in ("tailor_id", "tailor_contact_id"):
        if key in changes:
            changes[key] = optional_int(changes[key], key)

    if not changes:
        raise ValidationError("Nothing to update.", allowed=list(UPDATABLE_FIELDS))

    order = update_order(db.session, order_id, **changes)
    return jsonify({"success": True, "message": "Order updated.", "order": order.to_dict()})


@orders_bp.route("/<int:order_id>", methods=["DELETE"])
@admin_required
def order_archive(order_id):
    archive_order(db.session, order_id)
    return jsonify({"success": True, "message": "Order archived."})


@orders_bp.route("/<int:order_id>/completion", methods=["GET"])
@login_required
def order_completion(order_id):
    return jsonify({"success": True, "summary": get_order_completion_summary(db.session, order_id)})


@orders_bp.route("/<int:order_id>/status", methods=["POST"])
@login_required
def order_change_status(order_id):
    data = json_body(request)
    change = change_order_status(
        db.session,
        order_id,
        data.get("status"),
        actor=current_actor(),
        note=data.get("note"),
    )
    return jsonify({
        "success": True,
        "message": f"Status changed from {change.old_status} to {change.new_status}.",
        "status_change": change.to_dict(),
    })


@orders_bp.route("/<int:order_id>/status-history", methods=["GET"])
@login_required
def order_status_history(order_id):
    get_order(db.session, order_id)
    return jsonify({
        "success": True,
        "status_changes": [c.to_dict() for c in list_status_history(db.session, order_id)],
    })


@orders_bp.route("/<int:order_id>/movements", methods=["GET"])
@login_required
def order_movements(order_id):
    get_order(db.session, order_id)
    movements = list_movements(db.session, order_id=order_id)
    return jsonify({"success": True, "movements": [m.to_dict() for m in movements]})
