# File path: modules/orders/routes/__init__.py
# V1 orders CRUD
# V2 progress + status history
# V3 public link management

from flask import Blueprint

orders_bp = Blueprint("orders_bp", __name__)

# IMPORTANT: import route modules AFTER blueprint creation
from . import orders  # noqa: E402,F401
from . import progress  # noqa: E402,F401
from . import links  # noqa: E402,F401
