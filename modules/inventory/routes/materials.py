# File path: modules/inventory/routes/materials.py

from flask import jsonify, request

from database.models import db
from modules.inventory.routes import inventory_bp
from modules.inventory.services.catalog_service import (
    create_material,
    deactivate_material,
    get_material,
    list_materials,
    update_material,
)
from modules.inventory.services.restock_service import get_restock_alerts, validate_inventory_consistency
from modules.inventory.services.stock_ledger_service import (
    get_movement_summary,
    list_movements,
    post_material_movement,
)
from modules.shared.parsing import json_body, optional_int, to_float
from modules.user.decorators import admin_required, current_actor, login_required


@inventory_bp.route("/materials", methods=["GET"])
@login_required
def materials_index():
    items = list_materials(
        db.session,
        search=request.args.get("q"),
        include_inactive=request.args.get("show_inactive") == "1",
    )
    return jsonify({"success": True, "materials": [m.to_dict() for m in items]})


@inventory_bp.route("/materials", methods=["POST"])
@login_required
def materials_new():
    material = create_material(db.session, json_body(request), actor=current_actor())
    return jsonify({"success": True, "message": "Material created.", "material": material.to_dict()}), 201


@inventory_bp.route("/materials/<int:material_id>", methods=["GET"])
@login_required
def material_detail(material_id):
    material = get_material(db.session, material_id)
    limit = optional_int(request.args.get("limit"), "limit") or 50
    return jsonify({
        "success": True,
        "material": material.to_dict(),
        "movements": [m.to_dict() for m in list_movements(db.session, material_id=material.id, limit=limit)],
    })


@inventory_bp.route("/materials/<int:material_id>", methods=["PATCH", "PUT"])
@login_required
def material_update(material_id):
    material = update_material(db.session, material_id, json_body(request))
    return jsonify({"success": True, "message": "Material updated.", "material": material.to_dict()})


@inventory_bp.route("/materials/<int:material_id>", methods=["DELETE"])
@admin_required
def material_deactivate(material_id):
    deactivate_material(db.session, material_id)
    return jsonify({"success": True, "message": "Material deactivated."})


@inventory_bp.route("/materials/<int:material_id>/movements", methods=["POST"])
@login_required
def material_movement_new(material_id):
    data = json_body(request)
    movement = post_material_movement(
        db.session,
        material_id,
        data.get("movement_type"),
        data.get("qty"),
        actor=current_actor(),
        source=data.get("movement_source") or data.get("source") or "manual",
        order_id=optional_int(data.get("order_id"), "order_id"),
        note=data.get("notes") or data.get("note"),
        reference_number=data.get("reference_number"),
        unit_price=to_float(data.get("unit_price"), "Unit price"),
    )
    return jsonify({"success": True, "message": "Movement recorded.", "movement": movement.to_dict()}), 201


@inventory_bp.route("/movements", methods=["GET"])
@login_required
def movements_index():
    movements = list_movements(
        db.session,
        material_id=optional_int(request.args.get("material_id"), "material_id"),
        order_id=optional_int(request.args.get("order_id"), "order_id"),
        movement_type=request.args.get("movement_type"),
        source=request.args.get("source"),
        limit=optional_int(request.args.get("limit"), "limit") or 250,
    )
    return jsonify({"success": True, "movements": [m.to_dict() for m in movements]})


@inventory_bp.route("/movements/summary", methods=["GET"])
@login_required
def movements_summary():
    summary = get_movement_summary(
        db.session,
        material_id=optional_int(request.args.get("material_id"), "material_id"),
        source=request.args.get("source"),
    )
    return jsonify({"success": True, "summary": summary})


@inventory_bp.route("/restock-alerts", methods=["GET"])
@login_required
def restock_alerts():
    alerts = get_restock_alerts(db.session)
    return jsonify({"success": True, "count": len(alerts), "alerts": alerts})


@inventory_bp.route("/consistency", methods=["GET"])
@admin_required
def inventory_consistency():
    return jsonify({"success": True, **validate_inventory_consistency(db.session)})
