# File path: modules/orders/routes/progress.py

from flask import jsonify, request

from database.models import db
from modules.orders.routes import orders_bp
from modules.orders.services.fulfillment_service import list_progress_reports, record_progress
from modules.orders.services.order_service import get_order
from modules.orders.services.remaining_fabric_service import list_remaining_fabrics, record_remaining_fabric
from modules.shared.parsing import json_body, optional_int
from modules.user.decorators import current_actor, login_required


@orders_bp.route("/<int:order_id>/progress", methods=["POST"])
@login_required
def order_progress_post(order_id):
    data = json_body(request)

    result = record_progress(
        db.session,
        order_id,
        data.get("pieces_finished", data.get("pcs_finished")),
        reporter=current_actor(),
        product_id=optional_int(data.get("product_id"), "product_id"),
        photo_url=(data.get("photo_url") or "").strip() or None,
        note=(data.get("note") or "").strip() or None,
    )
    return jsonify({"success": True, "message": "Progress recorded.", **result.to_dict()}), 201


@orders_bp.route("/<int:order_id>/progress", methods=["GET"])
@login_required
def order_progress_index(order_id):
    get_order(db.session, order_id)
    reports = list_progress_reports(db.session, order_id)
    return jsonify({"success": True, "reports": [r.to_dict() for r in reports]})


@orders_bp.route("/<int:order_id>/remaining-fabric", methods=["POST"])
@login_required
def order_remaining_fabric_post(order_id):
    data = json_body(request)
    leftover = record_remaining_fabric(
        db.session,
        order_id,
        data.get("material_id"),
        data.get("qty_remaining"),
        reporter=current_actor(),
        photo_url=data.get("photo_url"),
        note=data.get("note"),
    )
    return jsonify({"success": True, "message": "Leftover fabric returned to stock.", "remaining_fabric": leftover.to_dict()}), 201


@orders_bp.route("/<int:order_id>/remaining-fabric", methods=["GET"])
@login_required
def order_remaining_fabric_index(order_id):
    get_order(db.session, order_id)
    return jsonify({
        "success": True,
        "remaining_fabrics": [r.to_dict() for r in list_remaining_fabrics(db.session, order_id=order_id)],
    })
