"""orders, materials, stock ledger, progress + status audit, order links

Revision ID: a1c4e2f9b7d0
Revises:
Create Date: 2026-10-19 09:14:22.318406

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c4e2f9b7d0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(120), unique=True),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("role", sa.String(16), nullable=False, server_default="user"),
        sa.Column("whatsapp_phone", sa.String(32)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "contacts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("contact_type", sa.String(20), nullable=False, server_default="tailor"),
        sa.Column("company", sa.String(120)),
        sa.Column("phone", sa.String(50)),
        sa.Column("whatsapp_phone", sa.String(50)),
        sa.Column("email", sa.String(120)),
        sa.Column("address", sa.Text()),
        sa.Column("notes", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_contacts_name", "contacts", ["name"])
    op.create_index("ix_contacts_contact_type", "contacts", ["contact_type"])

    op.create_table(
        "materials",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("code", sa.String(64)),
        sa.Column("unit", sa.String(16), nullable=False, server_default="m"),
        sa.Column("qty_on_hand", sa.Float(), nullable=False, server_default="0"),
        sa.Column("safety_stock", sa.Float(), nullable=False, server_default="0"),
        sa.Column("supplier", sa.String(128)),
        sa.Column("location", sa.String(64)),
        sa.Column("notes", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("qty_on_hand >= 0", name="ck_material_qty_non_negative"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_materials_code", "materials", ["code"], unique=True)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("material_id", sa.Integer(), sa.ForeignKey("materials.id", ondelete="SET NULL")),
        sa.Column("qty_on_hand", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unit", sa.String(16), nullable=False, server_default="pcs"),
        sa.Column("price", sa.Float()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_products_code", "products", ["code"], unique=True)

    op.create_table(
        "product_materials",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("material_id", sa.Integer(), sa.ForeignKey("materials.id"), nullable=False),
        sa.Column("qty_needed", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("product_id", "material_id", name="uq_product_material"),
        sa.CheckConstraint("qty_needed >= 0", name="ck_product_material_qty"),
    )
    op.create_index("ix_product_materials_product_id", "product_materials", ["product_id"])
    op.create_index("ix_product_materials_material_id", "product_materials", ["material_id"])

    op.create_table(
        "product_photos",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("photo_url", sa.String(500), nullable=False),
        sa.Column("thumbnail_url", sa.String(500)),
        sa.Column("description", sa.String(255)),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("uploaded_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_product_photos_product_id", "product_photos", ["product_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_number", sa.String(32), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="created"),
        sa.Column("target_pcs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed_pcs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("priority", sa.String(20), server_default="normal"),
        sa.Column("due_date", sa.Date()),
        sa.Column("customer_note", sa.Text()),
        sa.Column("description", sa.Text()),
        sa.Column("tailor_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("tailor_contact_id", sa.Integer(), sa.ForeignKey("contacts.id", ondelete="SET NULL")),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_orders_order_number", "orders", ["order_number"], unique=True)
    op.create_index("ix_orders_status", "orders", ["status"])

    op.create_table(
        "order_products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("qty", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("completed_qty", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completion_date", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("order_id", "product_id", name="uq_order_product"),
        sa.CheckConstraint("completed_qty <= qty", name="ck_order_product_overrun"),
    )
    op.create_index("ix_order_products_order_id", "order_products", ["order_id"])
    op.create_index("ix_order_products_product_id", "order_products", ["product_id"])

    op.create_table(
        "order_links",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("expire_at", sa.DateTime(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_order_links_order_id", "order_links", ["order_id"])
    op.create_index("ix_order_links_token", "order_links", ["token"], unique=True)

    op.create_table(
        "progress_reports",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("order_product_id", sa.Integer(), sa.ForeignKey("order_products.id", ondelete="SET NULL")),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="SET NULL")),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("order_link_id", sa.Integer(), sa.ForeignKey("order_links.id", ondelete="SET NULL")),
        sa.Column("pcs_finished", sa.Integer(), nullable=False),
        sa.Column("photo_url", sa.String(500)),
        sa.Column("tailor_name", sa.String(120)),
        sa.Column("note", sa.Text()),
        sa.Column("reported_at", sa.DateTime(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_progress_reports_order_id", "progress_reports", ["order_id"])
    op.create_index("ix_progress_reports_user_id", "progress_reports", ["user_id"])
    op.create_index("ix_progress_reports_reported_at", "progress_reports", ["reported_at"])

    op.create_table(
        "material_movements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("material_id", sa.Integer(), sa.ForeignKey("materials.id"), nullable=False),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="SET NULL")),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("qty", sa.Float(), nullable=False),
        sa.Column("movement_type", sa.String(3), nullable=False),
        sa.Column("movement_source", sa.String(20), nullable=False, server_default="manual"),
        sa.Column("qty_after", sa.Float()),
        sa.Column("reference_number", sa.String(100)),
        sa.Column("unit_price", sa.Float()),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("qty > 0", name="ck_movement_qty_positive"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_material_movements_material_id", "material_movements", ["material_id"])
    op.create_index("ix_material_movements_order_id", "material_movements", ["order_id"])
    op.create_index("ix_material_movements_movement_type", "material_movements", ["movement_type"])
    op.create_index("ix_material_movements_movement_source", "material_movements", ["movement_source"])
    op.create_index("ix_material_movements_created_at", "material_movements", ["created_at"])

    op.create_table(
        "status_changes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("old_status", sa.String(20), nullable=False),
        sa.Column("new_status", sa.String(20), nullable=False),
        sa.Column("changed_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("note", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_status_changes_order_id", "status_changes", ["order_id"])
    op.create_index("ix_status_changes_changed_by", "status_changes", ["changed_by"])


def downgrade():
    # children first
    for table in (
        "status_changes",
        "material_movements",
        "progress_reports",
        "order_links",
        "order_products",
        "orders",
        "product_photos",
        "product_materials",
        "products",
        "materials",
        "contacts",
        "users",
    ):
        op.drop_table(table)
