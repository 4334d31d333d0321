# File path: modules/orders/__init__.py
