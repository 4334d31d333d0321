# File path: modules/public/__init__.py
