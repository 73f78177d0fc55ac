# File: /app/models/__init__.py | Version: 2.0 | Title: Models Package Exports
from .core_entities import BaseEntity, User, Workspace
from .grid import Cell, DataTable, TableColumn, TableRow
from .view import View

__all__ = [
    "User",
    "Workspace",
    "BaseEntity",
    "DataTable",
    "TableColumn",
    "TableRow",
    "Cell",
    "View",
]
