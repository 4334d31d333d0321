# File path: modules/inventory/routes/products.py

from flask import jsonify, request

from database.models import db
from modules.inventory.routes import inventory_bp
from modules.inventory.services.bom_service import remove_product_material, set_product_material
from modules.inventory.services.catalog_service import (
    add_product_photo,
    create_product,
    deactivate_product,
    get_product,
    list_products,
    remove_product_photo,
    update_product,
)
from modules.shared.parsing import json_body, optional_int
from modules.shared.errors import ValidationError
from modules.shared.services.transaction import run_in_transaction
from modules.user.decorators import admin_required, login_required


@inventory_bp.route("/products", methods=["GET"])
@login_required
def products_index():
    items = list_products(
        db.session,
        search=request.args.get("q"),
        include_inactive=request.args.get("show_inactive") == "1",
    )
    return jsonify({"success": True, "products": [p.to_dict() for p in items]})


@inventory_bp.route("/products", methods=["POST"])
@login_required
def products_new():
    product = create_product(db.session, json_body(request))
    return jsonify({"success": True, "message": "Product created.", "product": product.to_dict()}), 201


@inventory_bp.route("/products/<int:product_id>", methods=["GET"])
@login_required
def product_detail(product_id):
    product = get_product(db.session, product_id)
    return jsonify({"success": True, "product": product.to_dict(with_bom=True)})


@inventory_bp.route("/products/<int:product_id>", methods=["PATCH", "PUT"])
@login_required
def product_update(product_id):
    product = update_product(db.session, product_id, json_body(request))
    return jsonify({"success": True, "message": "Product updated.", "product": product.to_dict()})


@inventory_bp.route("/products/<int:product_id>", methods=["DELETE"])
@admin_required
def product_deactivate(product_id):
    deactivate_product(db.session, product_id)
    return jsonify({"success": True, "message": "Product deactivated."})


# ----------------------------
# BOM
# ----------------------------
@inventory_bp.route("/products/<int:product_id>/materials", methods=["POST", "PUT"])
@login_required
def product_bom_set(product_id):
    data = json_body(request)
    material_id = optional_int(data.get("material_id"), "material_id")
    if material_id is None:
        raise ValidationError("material_id is required.")

    row = run_in_transaction(db.session, set_product_material, product_id, material_id, data.get("qty_needed"))
    return jsonify({"success": True, "message": "BOM updated.", "item": row.to_dict()})


@inventory_bp.route("/products/<int:product_id>/materials/<int:material_id>", methods=["DELETE"])
@login_required
def product_bom_remove(product_id, material_id):
    run_in_transaction(db.session, remove_product_material, product_id, material_id)
    return jsonify({"success": True, "message": "Material removed from BOM."})


# ----------------------------
# Photos
# ----------------------------
@inventory_bp.route("/products/<int:product_id>/photos", methods=["POST"])
@login_required
def product_photo_add(product_id):
    data = json_body(request)
    is_primary = data.get("is_primary") in (True, "1", "true", "on")
    photo = add_product_photo(
        db.session,
        product_id,
        data.get("photo_url"),
        thumbnail_url=data.get("thumbnail_url"),
        description=data.get("description"),
        is_primary=is_primary,
    )
    return jsonify({"success": True, "message": "Photo added.", "photo": photo.to_dict()}), 201


@inventory_bp.route("/products/<int:product_id>/photos/<int:photo_id>", methods=["DELETE"])
@login_required
def product_photo_remove(product_id, photo_id):
    remove_product_photo(db.session, product_id, photo_id)
    return jsonify({"success": True, "message": "Photo removed."})
