# checkout/__init__.py
