# File Path: modules/inventory/services/catalog_service.py
# -V1 Materials + products master data
# -V2 product photos (primary photo is unique per product)
import logging
from typing import Optional

from sqlalchemy import or_

from database.models import Material, Product, ProductPhoto
from modules.inventory.services.stock_ledger_service import apply_material_delta
from modules.shared.actors import actor_user_id
from modules.shared.errors import NotFoundError, ValidationError
from modules.shared.parsing import to_float
from modules.shared.services.transaction import run_in_transaction
from modules.shared.status import MOVEMENT_IN, SOURCE_ADJUSTMENT

logger = logging.getLogger(__name__)

MATERIAL_FIELDS = ("name", "code", "unit", "safety_stock", "supplier", "location", "notes")
PRODUCT_FIELDS = ("name", "code", "description", "material_id", "unit", "price")


def _clean_str(value) -> Optional[str]:
    value = (value or "").strip() if isinstance(value, str) else value
    return value or None


# ----------------------------
# Materials
# ----------------------------
def list_materials(session, search=None, include_inactive=False):
    q = session.query(Material)
    if not include_inactive:
        q = q.filter(Material.is_active == True)  # noqa: E712
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Material.name.ilike(like), Material.code.ilike(like)))
    return q.order_by(Material.name.asc()).all()


def get_material(session, material_id: int) -> Material:
    material = session.get(Material, material_id)
    if material is None:
        raise NotFoundError(f"Material {material_id} not found.")
    return material


def _create_material(session, data, actor):
    name = _clean_str(data.get("name"))
    if not name:
        raise ValidationError("Material name is required.")

    code = _clean_str(data.get("code"))
    if code and session.query(Material.id).filter(Material.code == code).first():
        raise ValidationError(f"Material code {code} already exists.")

    safety = to_float(data.get("safety_stock"), "Safety stock", 0.0)
    if safety < 0:
        raise ValidationError("Safety stock cannot be negative.")

    opening = to_float(data.get("qty_on_hand"), "Quantity on hand", 0.0)
    if opening < 0:
        raise ValidationError("Quantity on hand cannot be negative.")

    material = Material(
        name=name,
        code=code,
        unit=_clean_str(data.get("unit")) or "m",
        qty_on_hand=0.0,
        safety_stock=safety,
        supplier=_clean_str(data.get("supplier")),
        location=_clean_str(data.get("location")),
        notes=_clean_str(data.get("notes")),
        is_active=True,
    )
    session.add(material)
    session.flush()

    # opening stock goes through the ledger like any other receipt
    if opening > 0:
        apply_material_delta(
            session,
            material,
            MOVEMENT_IN,
            opening,
            source=SOURCE_ADJUSTMENT,
            user_id=actor_user_id(actor),
            note="Opening stock",
        )
        session.flush()
    return material


def create_material(session, data: dict, actor=None) -> Material:
    """
    Stock on hand is never set directly: a non-zero opening quantity is
    written as an IN adjustment movement. Commits.
    """
    material = run_in_transaction(session, _create_material, data, actor)
    logger.info("Material %s (%s) created, on hand %g", material.id, material.name, material.qty_on_hand)
    return material


def _update_material(session, material_id, data):
    material = get_material(session, material_id)

    if "qty_on_hand" in data:
        raise ValidationError("Stock on hand changes must be posted as material movements.")

    for key in MATERIAL_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if key == "name":
            value = _clean_str(value)
            if not value:
                raise ValidationError("Material name is required.")
        elif key == "code":
            value = _clean_str(value)
            if value and session.query(Material.id).filter(Material.code == value, Material.id != material.id).first():
                raise ValidationError(f"Material code {value} already exists.")
        elif key == "safety_stock":
            value = to_float(value, "Safety stock", 0.0)
            if value < 0:
                raise ValidationError("Safety stock cannot be negative.")
        elif key == "unit":
            value = _clean_str(value) or material.unit
        else:
            value = _clean_str(value)
        setattr(material, key, value)

    session.flush()
    return material


def update_material(session, material_id: int, data: dict) -> Material:
    return run_in_transaction(session, _update_material, material_id, data)


def _set_material_active(session, material_id, active):
    material = get_material(session, material_id)
    material.is_active = bool(active)
    session.flush()
    return material


def deactivate_material(session, material_id: int) -> Material:
    material = run_in_transaction(session, _set_material_active, material_id, False)
    logger.info("Material %s deactivated", material_id)
    return material


# ----------------------------
# Products
# ----------------------------
def list_products(session, search=None, include_inactive=False):
    q = session.query(Product)
    if not include_inactive:
        q = q.filter(Product.is_active == True)  # noqa: E712
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Product.name.ilike(like), Product.code.ilike(like)))
    return q.order_by(Product.code.asc()).all()


def get_product(session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found.")
    return product


def _check_base_material(session, material_id):
    if material_id in (None, ""):
        return None
    try:
        material_id = int(material_id)
    except (TypeError, ValueError):
        raise ValidationError("material_id must be an integer.")
    get_material(session, material_id)
    return material_id


def _create_product(session, data):
    name = _clean_str(data.get("name"))
    code = _clean_str(data.get("code"))
    if not name or not code:
        raise ValidationError("Product name and code are required.")
    if session.query(Product.id).filter(Product.code == code).first():
        raise ValidationError(f"Product code {code} already exists.")

    price = to_float(data.get("price"), "Price")
    if price is not None and price < 0:
        raise ValidationError("Price cannot be negative.")

    product = Product(
        name=name,
        code=code,
        description=_clean_str(data.get("description")),
        material_id=_check_base_material(session, data.get("material_id")),
        unit=_clean_str(data.get("unit")) or "pcs",
        price=price,
        qty_on_hand=0,
        is_active=True,
    )
    session.add(product)
    session.flush()
    return product


def create_product(session, data: dict) -> Product:
    product = run_in_transaction(session, _create_product, data)
    logger.info("Product %s (%s) created", product.id, product.code)
    return product


def _update_product(session, product_id, data):
    product = get_product(session, product_id)

    for key in PRODUCT_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if key in ("name", "code"):
            value = _clean_str(value)
            if not value:
                raise ValidationError(f"Product {key} is required.")
            if key == "code" and session.query(Product.id).filter(Product.code == value, Product.id != product.id).first():
                raise ValidationError(f"Product code {value} already exists.")
        elif key == "material_id":
            value = _check_base_material(session, value)
        elif key == "price":
            value = to_float(value, "Price")
            if value is not None and value < 0:
                raise ValidationError("Price cannot be negative.")
        elif key == "unit":
            value = _clean_str(value) or product.unit
        else:
            value = _clean_str(value)
        setattr(product, key, value)

    session.flush()
    return product


def update_product(session, product_id: int, data: dict) -> Product:
    return run_in_transaction(session, _update_product, product_id, data)


def _deactivate_product(session, product_id):
    product = get_product(session, product_id)
    product.is_active = False
    session.flush()
    return product


def deactivate_product(session, product_id: int) -> Product:
    """Soft delete: existing order lines keep pointing at it."""
    product = run_in_transaction(session, _deactivate_product, product_id)
    logger.info("Product %s deactivated", product_id)
    return product


# ----------------------------
# Product photos
# ----------------------------
def _add_product_photo(session, product_id, photo_url, thumbnail_url, description, is_primary):
    product = get_product(session, product_id)

    photo_url = _clean_str(photo_url)
    if not photo_url:
        raise ValidationError("photo_url is required.")

    # first photo becomes primary
    if not product.photos:
        is_primary = True
    if is_primary:
        for other in product.photos:
            other.is_primary = False

    photo = ProductPhoto(
        photo_url=photo_url,
        thumbnail_url=_clean_str(thumbnail_url),
        description=_clean_str(description),
        is_primary=bool(is_primary),
    )
    product.photos.append(photo)
    session.flush()
    return photo


def add_product_photo(session, product_id: int, photo_url: str, thumbnail_url=None, description=None,
                      is_primary: bool = False) -> ProductPhoto:
    return run_in_transaction(
        session, _add_product_photo, product_id, photo_url, thumbnail_url, description, is_primary
    )


def _remove_product_photo(session, product_id, photo_id):
    photo = session.get(ProductPhoto, photo_id)
    if photo is None or photo.product_id != product_id:
        raise NotFoundError(f"Photo {photo_id} not found for product {product_id}.")

    product = photo.product
    was_primary = photo.is_primary
    product.photos.remove(photo)  # delete-orphan
    session.flush()

    if was_primary and product.photos:
        product.photos[0].is_primary = True
        session.flush()


def remove_product_photo(session, product_id: int, photo_id: int) -> None:
    run_in_transaction(session, _remove_product_photo, product_id, photo_id)
