from flask import Blueprint, jsonify
from sqlalchemy import func

from database.models import db, Order, Material, ProgressReport
from modules.inventory.services.restock_service import get_restock_alerts
from modules.shared.status import ORDER_STATUSES
from modules.user.decorators import login_required

dashboard_bp = Blueprint("dashboard_bp", __name__, url_prefix="/dashboard")

@dashboard_bp.route("/")
@login_required
def dashboard():
    counts = dict(
        db.session.query(Order.status, func.count(Order.id))
        .filter(Order.is_active == True)  # noqa: E712
        .group_by(Order.status)
        .all()
    )
    orders_by_status = {s: int(counts.get(s, 0)) for s in ORDER_STATUSES}

    pieces = (
        db.session.query(
            func.coalesce(func.sum(Order.target_pcs), 0),
            func.coalesce(func.sum(Order.completed_pcs), 0),
        )
        .filter(Order.is_active == True)  # noqa: E712
        .one()
    )

    recent = (
        ProgressReport.query
        .order_by(ProgressReport.reported_at.desc(), ProgressReport.id.desc())
        .limit(10)
        .all()
    )

    return jsonify({
        "success": True,
        "orders_by_status": orders_by_status,
        "total_target_pcs": int(pieces[0] or 0),
        "total_completed_pcs": int(pieces[1] or 0),
        "material_count": Material.query.filter(Material.is_active == True).count(),  # noqa: E712
        "restock_alerts": get_restock_alerts(db.session),
        "recent_progress": [r.to_dict() for r in recent],
    })
