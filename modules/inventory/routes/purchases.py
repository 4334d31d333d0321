# File path: modules/inventory/routes/purchases.py

from flask import jsonify, request

from database.models import db
from modules.inventory.routes import inventory_bp
from modules.inventory.services.purchase_service import (
    create_purchase_log,
    list_purchase_logs,
    update_purchase_status,
)
from modules.shared.parsing import json_body, optional_int
from modules.user.decorators import current_actor, login_required


@inventory_bp.route("/purchases", methods=["GET"])
@login_required
def purchases_index():
    purchases = list_purchase_logs(
        db.session,
        material_id=optional_int(request.args.get("material_id"), "material_id"),
        status=request.args.get("status"),
        supplier=request.args.get("supplier"),
    )
    return jsonify({"success": True, "purchases": [p.to_dict() for p in purchases]})


@inventory_bp.route("/purchases", methods=["POST"])
@login_required
def purchases_new():
    purchase = create_purchase_log(db.session, json_body(request), actor=current_actor())
    return jsonify({"success": True, "message": "Purchase logged.", "purchase": purchase.to_dict()}), 201


@inventory_bp.route("/purchases/<int:purchase_id>/status", methods=["POST"])
@login_required
def purchase_change_status(purchase_id):
    data = json_body(request)
    purchase = update_purchase_status(
        db.session,
        purchase_id,
        data.get("status"),
        actor=current_actor(),
        received_quantity=data.get("received_quantity"),
        note=data.get("note"),
    )
    return jsonify({
        "success": True,
        "message": f"Purchase #{purchase.id} is now {purchase.status}.",
        "purchase": purchase.to_dict(),
    })
