# File path: modules/shared/status.py

STATUS_CREATED = "created"
STATUS_NEED_MATERIAL = "need material"
STATUS_CONFIRMED = "confirmed"
STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_SHIPPED = "shipped"
STATUS_DELIVERED = "delivered"
STATUS_CANCELLED = "cancelled"

ORDER_STATUSES = (
    STATUS_CREATED,
    STATUS_NEED_MATERIAL,
    STATUS_CONFIRMED,
    STATUS_PROCESSING,
    STATUS_COMPLETED,
    STATUS_SHIPPED,
    STATUS_DELIVERED,
    STATUS_CANCELLED,
)

# no more pieces can be reported once an order is here
CLOSED_STATUSES = (
    STATUS_CANCELLED,
)

MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"

SOURCE_MANUAL = "manual"
SOURCE_PURCHASE = "purchase"
SOURCE_ORDER = "order"
SOURCE_ADJUSTMENT = "adjustment"
SOURCE_PRODUCTION = "production"

AUTO_COMPLETED_NOTE = "auto-completed"

MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT)
MOVEMENT_SOURCES = (
    SOURCE_MANUAL,
    SOURCE_PURCHASE,
    SOURCE_ORDER,
    SOURCE_ADJUSTMENT,
    SOURCE_PRODUCTION,
)

PURCHASE_PENDING = "pending"
PURCHASE_RECEIVED = "received"
PURCHASE_CANCELLED = "cancelled"

PURCHASE_STATUSES = (
    PURCHASE_PENDING,
    PURCHASE_RECEIVED,
    PURCHASE_CANCELLED,
)

CONTACT_TYPES = ("tailor", "supplier", "customer", "other")
