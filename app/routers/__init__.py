# File: /app/routers/__init__.py | Version: 2.0 | Path: /app/routers/__init__.py
"""
Router package exports, e.g. ``from app.routers import grid as grid_router``.
"""
from . import auth, core_entities, grid, health, views

__all__ = ["auth", "core_entities", "grid", "health", "views"]
