"""purchase logs and remaining fabric returns

Revision ID: c7d3b91e04a5
Revises: a1c4e2f9b7d0
Create Date: 2026-10-19 15:02:47.551903

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c7d3b91e04a5'
down_revision = 'a1c4e2f9b7d0'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "purchase_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("material_id", sa.Integer(), sa.ForeignKey("materials.id"), nullable=False),
        sa.Column("purchase_date", sa.Date(), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("received_quantity", sa.Float()),
        sa.Column("unit", sa.String(16), nullable=False, server_default="m"),
        sa.Column("supplier", sa.String(128)),
        sa.Column("price_per_unit", sa.Float()),
        sa.Column("total_cost", sa.Float()),
        sa.Column("invoice_number", sa.String(100)),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text()),
        sa.Column("movement_id", sa.Integer(), sa.ForeignKey("material_movements.id", ondelete="SET NULL")),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_purchase_qty_positive"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_purchase_logs_material_id", "purchase_logs", ["material_id"])
    op.create_index("ix_purchase_logs_supplier", "purchase_logs", ["supplier"])
    op.create_index("ix_purchase_logs_status", "purchase_logs", ["status"])

    op.create_table(
        "remaining_fabrics",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("material_id", sa.Integer(), sa.ForeignKey("materials.id"), nullable=False),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("order_link_id", sa.Integer(), sa.ForeignKey("order_links.id", ondelete="SET NULL")),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("movement_id", sa.Integer(), sa.ForeignKey("material_movements.id", ondelete="SET NULL")),
        sa.Column("qty_remaining", sa.Float(), nullable=False),
        sa.Column("photo_url", sa.String(500)),
        sa.Column("tailor_name", sa.String(120)),
        sa.Column("note", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("qty_remaining > 0", name="ck_remaining_fabric_qty_positive"),
    )
    op.create_index("ix_remaining_fabrics_material_id", "remaining_fabrics", ["material_id"])
    op.create_index("ix_remaining_fabrics_order_id", "remaining_fabrics", ["order_id"])


def downgrade():
    op.drop_table("remaining_fabrics")
    op.drop_table("purchase_logs")
