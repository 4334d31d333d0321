# File path: modules/public/routes/__init__.py
# Token-authenticated pages for tailors without an account.
# No login_required here: the link token is the only credential.

import logging

from flask import Blueprint, jsonify, request

from database.models import db, Order
from modules.orders.services.fulfillment_service import record_progress
from modules.orders.services.order_link_service import resolve_order_link
from modules.orders.services.order_service import get_order_completion_summary
from modules.orders.services.remaining_fabric_service import record_remaining_fabric
from modules.shared.actors import AnonymousActor
from modules.shared.errors import ValidationError
from modules.shared.parsing import json_body, optional_int

public_bp = Blueprint("public_bp", __name__)

logger = logging.getLogger(__name__)


@public_bp.route("/order-links/<token>", methods=["GET"])
def order_link_view(token):
    grant = resolve_order_link(db.session, token)
    order = db.session.get(Order, grant.order_id)
    return jsonify({
        "success": True,
        "order": order.to_dict(),
        "summary": get_order_completion_summary(db.session, order.id),
    })


@public_bp.route("/order-links/<token>/progress", methods=["POST"])
def order_link_progress(token):
    grant = resolve_order_link(db.session, token)
    data = json_body(request)

    tailor_name = (data.get("tailor_name") or "").strip()
    if not tailor_name:
        raise ValidationError("Tailor name is required.")

    result = record_progress(
        db.session,
        grant.order_id,
        data.get("pieces_finished", data.get("pcs_finished")),
        reporter=AnonymousActor(display_name=tailor_name),
        product_id=optional_int(data.get("product_id"), "product_id"),
        photo_url=(data.get("photo_url") or "").strip() or None,
        note=(data.get("note") or "").strip() or None,
        order_link_id=grant.link_id,
    )
    logger.info("Public progress via link %s by %s", grant.link_id, tailor_name)
    return jsonify({
        "success": True,
        "message": "Thank you, progress recorded.",
        "order": result.order.to_dict(with_lines=False),
        "report": result.report.to_dict(),
    }), 201


@public_bp.route("/order-links/<token>/remaining-fabric", methods=["POST"])
def order_link_remaining_fabric(token):
    grant = resolve_order_link(db.session, token)
    data = json_body(request)

    tailor_name = (data.get("tailor_name") or "").strip()
    if not tailor_name:
        raise ValidationError("Tailor name is required.")

    leftover = record_remaining_fabric(
        db.session,
        grant.order_id,
        data.get("material_id"),
        data.get("qty_remaining"),
        reporter=AnonymousActor(display_name=tailor_name),
        photo_url=data.get("photo_url"),
        note=data.get("note"),
        order_link_id=grant.link_id,
    )
    logger.info("Leftover fabric via link %s by %s", grant.link_id, tailor_name)
    return jsonify({
        "success": True,
        "message": "Thank you, leftover fabric recorded.",
        "remaining_fabric": leftover.to_dict(),
    }), 201
