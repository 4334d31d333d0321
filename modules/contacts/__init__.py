# File path: modules/contacts/__init__.py
