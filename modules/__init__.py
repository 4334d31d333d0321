# /app/modules/__init__.py

# Import each module's blueprint
from .orders.routes import orders_bp
from .public.routes import public_bp
from .inventory.routes import inventory_bp
from .contacts.routes import contacts_bp
from .user.routes import admin_users_bp


module_blueprints = [
    ("orders_bp", orders_bp, "/orders"),
    ("public_bp", public_bp, "/public"),
    ("inventory_bp", inventory_bp, "/inventory"),
    ("contacts_bp", contacts_bp, "/contacts"),
    ("admin_users_bp", admin_users_bp, "/user"),
]

# Optional: export list so app.py can loop through them
__all__ = ["module_blueprints"]
