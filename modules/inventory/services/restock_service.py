# File path: modules/inventory/services/restock_service.py

from typing import Dict, List

from database.models import Material
from modules.inventory.services.stock_ledger_service import get_net_movement_map


def restock_priority(current: float, safety: float) -> str:
    if current <= 0:
        return "critical"
    if current <= safety * 0.5:
        return "high"
    if current <= safety * 0.8:
        return "medium"
    return "low"


def get_restock_alerts(session) -> List[Dict[str, object]]:
    """
    Active materials at or below their safety stock, worst first.
    """
    materials = (
        session.query(Material)
        .filter(Material.is_active == True)  # noqa: E712
        .filter(Material.qty_on_hand <= Material.safety_stock)
        .order_by(Material.qty_on_hand.asc(), Material.name.asc())
        .all()
    )

    alerts = []
    for m in materials:
        current = float(m.qty_on_hand or 0.0)
        safety = float(m.safety_stock or 0.0)
        alerts.append({
            "material_id": m.id,
            "material_name": m.name,
            "material_code": m.code,
            "unit": m.unit,
            "current_stock": current,
            "safety_stock": safety,
            "shortfall": max(0.0, safety - current),
            "priority": restock_priority(current, safety),
        })
    return alerts


def validate_inventory_consistency(session, tolerance: float = 0.01) -> Dict[str, object]:
    """
    Compare cached qty_on_hand against the movement ledger (IN - OUT).
    """
    materials = session.query(Material).order_by(Material.id.asc()).all()
    ledger = get_net_movement_map(session, [m.id for m in materials])

    details = []
    for m in materials:
        cached = float(m.qty_on_hand or 0.0)
        from_ledger = ledger.get(m.id, 0.0)
        if abs(cached - from_ledger) > tolerance:
            details.append({
                "material_id": m.id,
                "material_name": m.name,
                "qty_on_hand": cached,
                "ledger_qty": from_ledger,
                "difference": cached - from_ledger,
            })

    return {
        "total_materials": len(materials),
        "inconsistencies": len(details),
        "details": details,
    }
