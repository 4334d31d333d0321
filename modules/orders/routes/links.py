# File path: modules/orders/routes/links.py

from flask import jsonify, request

from database.models import db
from modules.orders.routes import orders_bp
from modules.orders.services.order_link_service import (
    create_order_link,
    deactivate_order_link,
    list_order_links,
)
from modules.orders.services.order_service import get_order
from modules.shared.parsing import json_body, parse_datetime
from modules.user.decorators import current_actor, login_required


@orders_bp.route("/<int:order_id>/links", methods=["GET"])
@login_required
def order_links_index(order_id):
    get_order(db.session, order_id)
    return jsonify({"success": True, "links": [l.to_dict() for l in list_order_links(db.session, order_id)]})


@orders_bp.route("/<int:order_id>/links", methods=["POST"])
@login_required
def order_links_new(order_id):
    data = json_body(request)
    link = create_order_link(
        db.session,
        order_id,
        actor=current_actor(),
        expire_at=parse_datetime(data.get("expire_at"), "Expire at"),
    )
    return jsonify({"success": True, "message": "Order link created.", "link": link.to_dict()}), 201


@orders_bp.route("/links/<int:link_id>/deactivate", methods=["POST"])
@login_required
def order_link_deactivate(link_id):
    link = deactivate_order_link(db.session, link_id)
    return jsonify({"success": True, "message": "Order link deactivated.", "link": link.to_dict()})
