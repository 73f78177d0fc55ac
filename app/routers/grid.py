# File: /app/routers/grid.py | Version: 1.0 | Title: Grid Router (table meta, row pages, bulk rows, columns, cell writes)
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.crud import columns as crud_columns
from app.crud import core_entities as crud_core
from app.crud import rows as crud_rows
from app.db.session import get_db
from app.models import User
from app.schemas.grid import (
    AddRowsIn,
    AddRowsOut,
    CellValueIn,
    CellWriteOut,
    ColumnCreate,
    ColumnMove,
    ColumnOut,
    ColumnRename,
    ColumnReorder,
    RowPageOut,
    TableMetaOut,
)
from app.security import get_current_user

router = APIRouter(tags=["Grid"])


@router.get("/tables/{table_id}/meta", response_model=TableMetaOut)
def get_table_meta(
    table_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_core.get_table_meta(db, user_id=current_user.id, table_id=table_id)


# ---------------------------
# Rows
# ---------------------------


@router.get("/tables/{table_id}/rows", response_model=RowPageOut)
def query_rows(
    table_id: str,
    view_id: Optional[str] = Query(default=None),
    cursor: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    q: Optional[str] = Query(default=None, max_length=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    One page of rows. Without a view the table is read in row order with no
    filters. ``limit`` is clamped to the configured page bounds; ``q``
    replaces the view's saved search for this request.
    """
    page = crud_rows.query_rows(
        db,
        user_id=current_user.id,
        table_id=table_id,
        view_id=view_id,
        cursor=cursor,
        limit=limit,
        search=q,
    )
    return {"rows": page.rows, "next_cursor": page.next_cursor}


@router.post("/tables/{table_id}/rows", response_model=AddRowsOut, status_code=status.HTTP_201_CREATED)
def add_rows(
    table_id: str,
    payload: AddRowsIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_rows.add_rows(db, user_id=current_user.id, table_id=table_id, count=payload.count)


@router.put("/rows/{row_id}/cells/{column_id}", response_model=CellWriteOut)
def set_cell_value(
    row_id: str,
    column_id: str,
    payload: CellValueIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_rows.set_cell_value(
        db, user_id=current_user.id, row_id=row_id, column_id=column_id, value=payload.value
    )


# ---------------------------
# Columns
# ---------------------------


@router.post("/tables/{table_id}/columns", response_model=ColumnOut, status_code=status.HTTP_201_CREATED)
def add_column(
    table_id: str,
    payload: ColumnCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_columns.add_column(
        db, user_id=current_user.id, table_id=table_id, name=payload.name, type=payload.type
    )


@router.put("/tables/{table_id}/columns/order", response_model=List[ColumnOut])
def reorder_columns(
    table_id: str,
    payload: ColumnReorder,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_columns.reorder_columns(
        db, user_id=current_user.id, table_id=table_id, ordered_ids=payload.column_ids
    )


@router.patch("/columns/{column_id}", response_model=ColumnOut)
def rename_column(
    column_id: str,
    payload: ColumnRename,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_columns.rename_column(db, user_id=current_user.id, column_id=column_id, name=payload.name)


@router.delete("/columns/{column_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_column(
    column_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    crud_columns.delete_column(db, user_id=current_user.id, column_id=column_id)


@router.post("/columns/{column_id}/move", response_model=List[ColumnOut])
def move_column(
    column_id: str,
    payload: ColumnMove,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_columns.move_column(
        db, user_id=current_user.id, column_id=column_id, direction=payload.direction
    )
