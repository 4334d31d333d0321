# File path: modules/inventory/routes/__init__.py
# -V1 Materials + stock movements
# -V2 Products, BOM, photos
# -V3 Purchase logs

from flask import Blueprint

inventory_bp = Blueprint("inventory_bp", __name__)

# IMPORTANT: import route modules AFTER blueprint creation
from . import materials  # noqa: E402,F401
from . import products  # noqa: E402,F401
from . import purchases  # noqa: E402,F401
