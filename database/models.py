# File path: database/models.py
# Change summary:
# -V1 Orders backbone (Order -> OrderProduct lines, Product, Material)
# -V1 User table supports admin/user/tailor auth
# -V2 Bill of materials (ProductMaterial) + MaterialMovement stock ledger
# -V3 ProgressReport / StatusChange audit trail
# -V4 OrderLink public progress tokens, Contacts, ProductPhoto
# -V5 PurchaseLog receipts + RemainingFabric returns (both post to the ledger)
from flask_sqlalchemy import SQLAlchemy
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from sqlalchemy import UniqueConstraint, CheckConstraint


db = SQLAlchemy()


class User(db.Model):
    __tablename__ = 'users'


    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(16), default='user', nullable=False) # 'admin' | 'user' | 'tailor'
    whatsapp_phone = db.Column(db.String(32))
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)


    def set_password(self, password):
        self.password_hash = generate_password_hash(password)


    def check_password(self, password):
        return check_password_hash(self.password_hash, password)


    def is_admin(self):
        return self.role == 'admin'

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "whatsapp_phone": self.whatsapp_phone,
            "is_active": self.is_active,
        }


class Contact(db.Model):
    __tablename__ = "contacts"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, index=True)
    contact_type = db.Column(db.String(20), nullable=False, default="tailor", index=True)
    company = db.Column(db.String(120))
    phone = db.Column(db.String(50))
    whatsapp_phone = db.Column(db.String(50))
    email = db.Column(db.String(120))
    address = db.Column(db.Text)
    notes = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "contact_type": self.contact_type,
            "company": self.company,
            "phone": self.phone,
            "whatsapp_phone": self.whatsapp_phone,
            "email": self.email,
            "address": self.address,
            "notes": self.notes,
            "is_active": self.is_active,
        }


class Material(db.Model):
    __tablename__ = "materials"
    __table_args__ = (
        CheckConstraint("qty_on_hand >= 0", name="ck_material_qty_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(128), nullable=False)          # e.g. "Cotton Navy Blue"
    code = db.Column(db.String(64), unique=True, index=True)  # optional shop code
    unit = db.Column(db.String(16), default="m", nullable=False)  # m, roll, pcs, kg...

    qty_on_hand = db.Column(db.Float, default=0.0, nullable=False)
    safety_stock = db.Column(db.Float, default=0.0, nullable=False)  # when <= safety_stock => restock

    supplier = db.Column(db.String(128))
    location = db.Column(db.String(64))
    notes = db.Column(db.Text)

    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # optimistic lock; bumped by the ORM on every flush
    version = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    movements = db.relationship("MaterialMovement", back_populates="material", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "unit": self.unit,
            "qty_on_hand": float(self.qty_on_hand or 0.0),
            "safety_stock": float(self.safety_stock or 0.0),
            "supplier": self.supplier,
            "location": self.location,
            "notes": self.notes,
            "is_active": self.is_active,
        }


class Product(db.Model):
    __tablename__ = "products"
    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(200), nullable=False)
    code = db.Column(db.String(64), nullable=False, unique=True, index=True)
    description = db.Column(db.Text)

    # optional single "base material"; the full recipe lives in ProductMaterial
    material_id = db.Column(db.Integer, db.ForeignKey("materials.id", ondelete="SET NULL"), nullable=True)
    base_material = db.relationship("Material")

    qty_on_hand = db.Column(db.Integer, default=0, nullable=False)  # finished goods
    unit = db.Column(db.String(16), default="pcs", nullable=False)
    price = db.Column(db.Float)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    bom_items = db.relationship("ProductMaterial", back_populates="product", cascade="all, delete-orphan")
    photos = db.relationship("ProductPhoto", back_populates="product", cascade="all, delete-orphan")

    def to_dict(self, with_bom=False):
        out = {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "material_id": self.material_id,
            "qty_on_hand": int(self.qty_on_hand or 0),
            "unit": self.unit,
            "price": self.price,
            "is_active": self.is_active,
        }
        if with_bom:
            out["materials"] = [pm.to_dict() for pm in self.bom_items]
            out["photos"] = [p.to_dict() for p in self.photos]
        return out


class ProductMaterial(db.Model):
    """
    Bill of materials row: qty_needed units of material per one unit of product.
    """
    __tablename__ = "product_materials"
    __table_args__ = (
        UniqueConstraint("product_id", "material_id", name="uq_product_material"),
        CheckConstraint("qty_needed >= 0", name="ck_product_material_qty"),
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    product = db.relationship("Product", back_populates="bom_items")

    material_id = db.Column(db.Integer, db.ForeignKey("materials.id"), nullable=False, index=True)
    material = db.relationship("Material")

    qty_needed = db.Column(db.Float, nullable=False, default=0.0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "material_id": self.material_id,
            "material_name": self.material.name if self.material else None,
            "unit": self.material.unit if self.material else None,
            "qty_needed": float(self.qty_needed or 0.0),
        }


class ProductPhoto(db.Model):
    __tablename__ = "product_photos"
    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    product = db.relationship("Product", back_populates="photos")

    photo_url = db.Column(db.String(500), nullable=False)
    thumbnail_url = db.Column(db.String(500))
    description = db.Column(db.String(255))
    is_primary = db.Column(db.Boolean, default=False, nullable=False)

    uploaded_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "photo_url": self.photo_url,
            "thumbnail_url": self.thumbnail_url,
            "description": self.description,
            "is_primary": self.is_primary,
        }


class Order(db.Model):
    __tablename__ = "orders"
    __table_args__ = {"sqlite_autoincrement": True}
    id = db.Column(db.Integer, primary_key=True)

    order_number = db.Column(db.String(32), nullable=False, unique=True, index=True)
    status = db.Column(db.String(20), nullable=False, default="created", index=True)

    target_pcs = db.Column(db.Integer, nullable=False, default=0)
    completed_pcs = db.Column(db.Integer, nullable=False, default=0)

    priority = db.Column(db.String(20), default="normal")
    due_date = db.Column(db.Date)
    customer_note = db.Column(db.Text)
    description = db.Column(db.Text)

    tailor_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    tailor = db.relationship("User", foreign_keys=[tailor_id])

    tailor_contact_id = db.Column(db.Integer, db.ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True)
    tailor_contact = db.relationship("Contact")

    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)

    version = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    lines = db.relationship(
        "OrderProduct",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderProduct.id",
    )
    progress_reports = db.relationship("ProgressReport", back_populates="order", cascade="all, delete-orphan")
    status_changes = db.relationship(
        "StatusChange",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="StatusChange.id",
    )
    links = db.relationship("OrderLink", back_populates="order", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}

    @property
    def remaining_pcs(self):
        return max(0, int(self.target_pcs or 0) - int(self.completed_pcs or 0))

    def to_dict(self, with_lines=True):
        out = {
            "id": self.id,
            "order_number": self.order_number,
            "status": self.status,
            "target_pcs": int(self.target_pcs or 0),
            "completed_pcs": int(self.completed_pcs or 0),
            "remaining_pcs": self.remaining_pcs,
            "priority": self.priority,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "customer_note": self.customer_note,
            "description": self.description,
            "tailor_id": self.tailor_id,
            "tailor_contact_id": self.tailor_contact_id,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if with_lines:
            out["lines"] = [l.to_dict() for l in self.lines]
        return out


class OrderProduct(db.Model):
    __tablename__ = "order_products"
    __table_args__ = (
        UniqueConstraint("order_id", "product_id", name="uq_order_product"),
        CheckConstraint("completed_qty <= qty", name="ck_order_product_overrun"),
    )

    id = db.Column(db.Integer, primary_key=True)

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    order = db.relationship("Order", back_populates="lines")

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product = db.relationship("Product")

    qty = db.Column(db.Integer, nullable=False, default=1)
    completed_qty = db.Column(db.Integer, nullable=False, default=0)
    is_completed = db.Column(db.Boolean, default=False, nullable=False)
    completion_date = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @property
    def remaining_qty(self):
        return max(0, int(self.qty or 0) - int(self.completed_qty or 0))

    @property
    def completion_percentage(self):
        if not self.qty:
            return 0
        return round(min(100.0, (self.completed_qty or 0) * 100.0 / self.qty), 1)

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "qty": int(self.qty or 0),
            "completed_qty": int(self.completed_qty or 0),
            "remaining_qty": self.remaining_qty,
            "completion_percentage": self.completion_percentage,
            "is_completed": self.is_completed,
            "completion_date": self.completion_date.isoformat() if self.completion_date else None,
        }


class ProgressReport(db.Model):
    """
    Append-only; rows are never updated after insert.
    """
    __tablename__ = "progress_reports"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    order = db.relationship("Order", back_populates="progress_reports")

    order_product_id = db.Column(db.Integer, db.ForeignKey("order_products.id", ondelete="SET NULL"), nullable=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    # null when submitted through a public OrderLink
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    order_link_id = db.Column(db.Integer, db.ForeignKey("order_links.id", ondelete="SET NULL"), nullable=True)

    pcs_finished = db.Column(db.Integer, nullable=False)
    photo_url = db.Column(db.String(500))
    tailor_name = db.Column(db.String(120))
    note = db.Column(db.Text)

    reported_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "order_product_id": self.order_product_id,
            "product_id": self.product_id,
            "user_id": self.user_id,
            "order_link_id": self.order_link_id,
            "pcs_finished": self.pcs_finished,
            "photo_url": self.photo_url,
            "tailor_name": self.tailor_name,
            "note": self.note,
            "reported_at": self.reported_at.isoformat() if self.reported_at else None,
        }


class MaterialMovement(db.Model):
    """
    Stock ledger row. qty is always positive; movement_type carries direction.
    """
    __tablename__ = "material_movements"
    __table_args__ = (
        CheckConstraint("qty > 0", name="ck_movement_qty_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    material_id = db.Column(db.Integer, db.ForeignKey("materials.id"), nullable=False, index=True)
    material = db.relationship("Material", back_populates="movements")

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="SET NULL"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    qty = db.Column(db.Float, nullable=False)
    movement_type = db.Column(db.String(3), nullable=False, index=True)          # IN | OUT
    movement_source = db.Column(db.String(20), nullable=False, default="manual", index=True)
    qty_after = db.Column(db.Float)

    reference_number = db.Column(db.String(100))
    unit_price = db.Column(db.Float)
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "material_id": self.material_id,
            "order_id": self.order_id,
            "user_id": self.user_id,
            "qty": float(self.qty),
            "movement_type": self.movement_type,
            "movement_source": self.movement_source,
            "qty_after": self.qty_after,
            "reference_number": self.reference_number,
            "unit_price": self.unit_price,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class StatusChange(db.Model):
    __tablename__ = "status_changes"
    id = db.Column(db.Integer, primary_key=True)

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    order = db.relationship("Order", back_populates="status_changes")

    old_status = db.Column(db.String(20), nullable=False)
    new_status = db.Column(db.String(20), nullable=False)
    changed_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    note = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "old_status": self.old_status,
            "new_status": self.new_status,
            "changed_by": self.changed_by,
            "note": self.note,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class OrderLink(db.Model):
    __tablename__ = "order_links"
    id = db.Column(db.Integer, primary_key=True)

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    order = db.relationship("Order", back_populates="links")

    # creator; null for links minted without a session user
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    token = db.Column(db.String(64), nullable=False, unique=True, index=True)
    expire_at = db.Column(db.DateTime, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "user_id": self.user_id,
            "token": self.token,
            "expire_at": self.expire_at.isoformat() if self.expire_at else None,
            "is_active": self.is_active,
        }


class PurchaseLog(db.Model):
    """
    Fabric purchase. Moving to 'received' posts an IN movement (movement_id);
    moving away from 'received' posts the reversing OUT and clears it.
    """
    __tablename__ = "purchase_logs"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_purchase_qty_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    material_id = db.Column(db.Integer, db.ForeignKey("materials.id"), nullable=False, index=True)
    material = db.relationship("Material")

    purchase_date = db.Column(db.Date, nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    received_quantity = db.Column(db.Float)
    unit = db.Column(db.String(16), nullable=False, default="m")

    supplier = db.Column(db.String(128), index=True)
    price_per_unit = db.Column(db.Float)
    total_cost = db.Column(db.Float)
    invoice_number = db.Column(db.String(100))

    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    notes = db.Column(db.Text)

    # the live receipt movement, null unless status == 'received'
    movement_id = db.Column(db.Integer, db.ForeignKey("material_movements.id", ondelete="SET NULL"), nullable=True)
    movement = db.relationship("MaterialMovement", foreign_keys=[movement_id])

    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "material_id": self.material_id,
            "material_name": self.material.name if self.material else None,
            "purchase_date": self.purchase_date.isoformat() if self.purchase_date else None,
            "quantity": float(self.quantity or 0.0),
            "received_quantity": self.received_quantity,
            "unit": self.unit,
            "supplier": self.supplier,
            "price_per_unit": self.price_per_unit,
            "total_cost": self.total_cost,
            "invoice_number": self.invoice_number,
            "status": self.status,
            "notes": self.notes,
            "movement_id": self.movement_id,
        }


class RemainingFabric(db.Model):
    """
    Leftover fabric a tailor reports back after an order is finished.
    """
    __tablename__ = "remaining_fabrics"
    __table_args__ = (
        CheckConstraint("qty_remaining > 0", name="ck_remaining_fabric_qty_positive"),
    )

    id = db.Column(db.Integer, primary_key=True)

    material_id = db.Column(db.Integer, db.ForeignKey("materials.id"), nullable=False, index=True)
    material = db.relationship("Material")

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    order_link_id = db.Column(db.Integer, db.ForeignKey("order_links.id", ondelete="SET NULL"), nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    movement_id = db.Column(db.Integer, db.ForeignKey("material_movements.id", ondelete="SET NULL"), nullable=True)

    qty_remaining = db.Column(db.Float, nullable=False)
    photo_url = db.Column(db.String(500))
    tailor_name = db.Column(db.String(120))
    note = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "material_id": self.material_id,
            "material_name": self.material.name if self.material else None,
            "order_id": self.order_id,
            "order_link_id": self.order_link_id,
            "user_id": self.user_id,
            "movement_id": self.movement_id,
            "qty_remaining": float(self.qty_remaining or 0.0),
            "unit": self.material.unit if self.material else None,
            "photo_url": self.photo_url,
            "tailor_name": self.tailor_name,
            "note": self.note,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
