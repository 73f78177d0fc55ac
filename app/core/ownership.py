# File: /app/core/ownership.py | Version: 1.0 | Title: Ownership chain checks (user -> workspace -> base -> table -> column/row/view)
"""
Every operation resolves its target through the owning user before any other
work happens. A target that does not exist and a target owned by somebody
else are indistinguishable to the caller: both raise NotFoundError.
"""
from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.models import BaseEntity, DataTable, TableColumn, TableRow, View, Workspace


def get_owned_workspace(db: Session, *, user_id: Any, workspace_id: Any) -> Workspace:
    ws = (
        db.query(Workspace)
        .filter(Workspace.id == str(workspace_id), Workspace.owner_id == str(user_id))
        .first()
    )
    if ws is None:
        raise NotFoundError("Workspace not found")
    return ws


def get_owned_base(db: Session, *, user_id: Any, base_id: Any) -> BaseEntity:
    base = (
        db.query(BaseEntity)
        .join(Workspace, Workspace.id == BaseEntity.workspace_id)
        .filter(BaseEntity.id == str(base_id), Workspace.owner_id == str(user_id))
        .first()
    )
    if base is None:
        raise NotFoundError("Base not found")
    return base


def _owned_tables(db: Session, user_id: Any):
    return (
        db.query(DataTable)
        .join(BaseEntity, BaseEntity.id == DataTable.base_id)
        .join(Workspace, Workspace.id == BaseEntity.workspace_id)
        .filter(Workspace.owner_id == str(user_id))
    )


def get_owned_table(db: Session, *, user_id: Any, table_id: Any) -> DataTable:
    table = _owned_tables(db, user_id).filter(DataTable.id == str(table_id)).first()
    if table is None:
        raise NotFoundError("Table not found")
    return table


def get_owned_column(db: Session, *, user_id: Any, column_id: Any) -> TableColumn:
    col = (
        db.query(TableColumn)
        .join(DataTable, DataTable.id == TableColumn.table_id)
        .join(BaseEntity, BaseEntity.id == DataTable.base_id)
        .join(Workspace, Workspace.id == BaseEntity.workspace_id)
        .filter(TableColumn.id == str(column_id), Workspace.owner_id == str(user_id))
        .first()
    )
    if col is None:
        raise NotFoundError("Column not found")
    return col


def get_owned_row(db: Session, *, user_id: Any, row_id: Any) -> TableRow:
    row = (
        db.query(TableRow)
        .join(DataTable, DataTable.id == TableRow.table_id)
        .join(BaseEntity, BaseEntity.id == DataTable.base_id)
        .join(Workspace, Workspace.id == BaseEntity.workspace_id)
        .filter(TableRow.id == str(row_id), Workspace.owner_id == str(user_id))
        .first()
    )
    if row is None:
        raise NotFoundError("Row not found")
    return row


def get_owned_view(db: Session, *, user_id: Any, view_id: Any) -> View:
    view = (
        db.query(View)
        .join(DataTable, DataTable.id == View.table_id)
        .join(BaseEntity, BaseEntity.id == DataTable.base_id)
        .join(Workspace, Workspace.id == BaseEntity.workspace_id)
        .filter(View.id == str(view_id), Workspace.owner_id == str(user_id))
        .first()
    )
    if view is None:
        raise NotFoundError("View not found")
    return view
