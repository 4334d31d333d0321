# File path: modules/inventory/__init__.py
