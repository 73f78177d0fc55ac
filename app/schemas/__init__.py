# File: /app/schemas/__init__.py | Version: 2.0 | Path: /app/schemas/__init__.py
from . import auth, core_entities, grid, view

__all__ = ["auth", "core_entities", "grid", "view"]
