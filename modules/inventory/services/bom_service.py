# File path: modules/inventory/services/bom_service.py
# -V1 Product bill of materials (ProductMaterial) maintenance

from collections import defaultdict
from typing import Dict, Iterable, Tuple

from database.models import Material, Product, ProductMaterial
from modules.shared.errors import NotFoundError, ValidationError


def set_product_material(session, product_id: int, material_id: int, qty_needed) -> ProductMaterial:
    """
    Upsert one BOM row. No commit.
    """
    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError(f"Product {product_id} not found.")

    material = session.get(Material, material_id)
    if not material:
        raise NotFoundError(f"Material {material_id} not found.")

    try:
        qty_needed = float(qty_needed)
    except (TypeError, ValueError):
        raise ValidationError("qty_needed must be a number.")
    if qty_needed < 0:
        raise ValidationError("qty_needed cannot be negative.")

    row = (
        session.query(ProductMaterial)
        .filter_by(product_id=product.id, material_id=material.id)
        .first()
    )
    if row is None:
        row = ProductMaterial(product_id=product.id, material_id=material.id, qty_needed=qty_needed)
        session.add(row)
    else:
        row.qty_needed = qty_needed

    session.flush()
    return row


def remove_product_material(session, product_id: int, material_id: int) -> None:
    row = (
        session.query(ProductMaterial)
        .filter_by(product_id=product_id, material_id=material_id)
        .first()
    )
    if row is None:
        raise NotFoundError("That material is not part of this product's bill of materials.")
    session.delete(row)


def explode_consumption(session, pieces_by_product: Iterable[Tuple[int, int]]) -> Dict[int, float]:
    """
    [(product_id, pieces), ...] -> {material_id: total qty consumed}

    Rows with qty_needed == 0 produce no consumption.
    """
    pieces = defaultdict(int)
    for product_id, pcs in pieces_by_product:
        pieces[product_id] += int(pcs)

    if not pieces:
        return {}

    rows = (
        session.query(ProductMaterial)
        .filter(ProductMaterial.product_id.in_(list(pieces.keys())))
        .all()
    )

    out = defaultdict(float)
    for row in rows:
        need = float(row.qty_needed or 0.0)
        if need <= 0:
            continue
        out[row.material_id] += pieces[row.product_id] * need
    return {mid: round(qty, 6) for mid, qty in out.items()}
