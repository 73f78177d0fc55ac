# File: /app/crud/rows.py | Version: 1.0 | Title: Row query entry point, bulk row insertion, cell writes
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import InvalidInputError, NotFoundError
from app.core.ownership import get_owned_row, get_owned_table
from app.crud.filtering import column_types, compile_view
from app.crud.pagination import RowPage, clamp_limit, fetch_page
from app.models import Cell, DataTable, TableColumn, TableRow, View
from app.models.core_entities import gen_uuid
from app.schemas.grid import ColumnType
from app.schemas.view import ViewConfig

log = logging.getLogger(__name__)


# ---------------------------
# Query
# ---------------------------


def query_rows(
    db: Session,
    *,
    user_id: Any,
    table_id: Any,
    view_id: Optional[str] = None,
    cursor: Optional[str] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
) -> RowPage:
    """
    One page of rows for a table, shaped by a view's filters / sort / search.
    ``search`` overrides the view's saved ``q`` for this request only.
    """
    table = get_owned_table(db, user_id=user_id, table_id=table_id)

    config = ViewConfig()
    if view_id:
        view = (
            db.query(View)
            .filter(View.id == str(view_id), View.table_id == table.id)
            .first()
        )
        if view is None:
            raise NotFoundError("View not found")
        config = ViewConfig.from_stored(view.config)

    columns = column_types(
        db.query(TableColumn).filter(TableColumn.table_id == table.id).all()
    )
    compiled = compile_view(columns, config, search)
    return fetch_page(db, table.id, compiled, columns, cursor, clamp_limit(limit))


# ---------------------------
# Bulk row insertion
# ---------------------------


def blank_row_mappings(table_id: str, start: int, size: int) -> List[Dict[str, Any]]:
    return [
        {"id": gen_uuid(), "table_id": table_id, "row_index": start + i}
        for i in range(size)
    ]


def reserve_row_indexes(db: Session, table_id: str, count: int) -> int:
    """
    Claim ``count`` consecutive row indexes for a table and return the first.
    The table row is locked while the counter moves, so concurrent inserts
    get disjoint ranges.
    """
    try:
        table = (
            db.query(DataTable)
            .filter(DataTable.id == table_id)
            .populate_existing()
            .with_for_update()
            .one()
        )
        start = table.next_row_index
        table.next_row_index = start + count
        db.commit()
    except Exception:
        db.rollback()
        raise
    return start


def add_rows(db: Session, *, user_id: Any, table_id: Any, count: int) -> Dict[str, int]:
    """
    Append ``count`` blank rows (no cells). Inserts run in batches of
    ROW_INSERT_BATCH_SIZE, one transaction each; if a batch fails the rows
    already written for this call are removed before the error propagates.
    """
    table = get_owned_table(db, user_id=user_id, table_id=table_id)
    if count < 1 or count > settings.ADD_ROWS_MAX:
        raise InvalidInputError(f"count must be between 1 and {settings.ADD_ROWS_MAX}")

    start = reserve_row_indexes(db, table.id, count)
    end = start + count
    batch = max(1, settings.ROW_INSERT_BATCH_SIZE)
    written = 0
    try:
        for offset in range(0, count, batch):
            size = min(batch, count - offset)
            db.execute(insert(TableRow), blank_row_mappings(table.id, start + offset, size))
            db.commit()
            written += size
    except Exception:
        db.rollback()
        log.warning(
            "Row insert failed for table %s after %d of %d rows; removing partial insert",
            table.id,
            written,
            count,
        )
        if written:
            db.execute(
                delete(TableRow).where(
                    TableRow.table_id == table.id,
                    TableRow.row_index >= start,
                    TableRow.row_index < end,
                )
            )
            db.commit()
        raise

    log.info("Added %d rows to table %s (row_index %d..%d)", count, table.id, start, end - 1)
    return {"added": count, "start_row_index": start, "end_row_index": end - 1}


# ---------------------------
# Cell writes
# ---------------------------


def normalize_cell_input(col_type: str, raw: str) -> Tuple[Optional[str], Optional[float]]:
    """
    Map raw user input to (text_value, number_value) for a column type.
    Blank input clears the cell; non-numeric input on a NUMBER column is rejected.
    """
    trimmed = (raw or "").strip()
    try:
        kind = ColumnType(col_type)
    except ValueError:
        raise InvalidInputError(f"Unsupported column type: {col_type}")

    if kind == ColumnType.TEXT:
        return (trimmed or None, None)

    if not trimmed:
        return (None, None)
    # float() also accepts digit separators ("1_000"); plain numerals only
    if "_" in trimmed:
        raise InvalidInputError("Invalid number")
    try:
        number = float(trimmed)
    except ValueError:
        raise InvalidInputError("Invalid number")
    if not math.isfinite(number):
        raise InvalidInputError("Invalid number")
    return (None, number)


def _upsert_cell(db: Session, row_id: str, column_id: str, text_value, number_value) -> Cell:
    cell = db.query(Cell).filter(Cell.row_id == row_id, Cell.column_id == column_id).first()
    if cell is None:
        cell = Cell(row_id=row_id, column_id=column_id)
        db.add(cell)
    cell.text_value = text_value
    cell.number_value = number_value
    db.commit()
    db.refresh(cell)
    return cell


def set_cell_value(
    db: Session, *, user_id: Any, row_id: Any, column_id: Any, value: str
) -> Cell:
    row = get_owned_row(db, user_id=user_id, row_id=row_id)
    col = (
        db.query(TableColumn)
        .filter(TableColumn.id == str(column_id), TableColumn.table_id == row.table_id)
        .first()
    )
    if col is None:
        raise NotFoundError("Column not found")

    text_value, number_value = normalize_cell_input(col.type, value)
    try:
        return _upsert_cell(db, row.id, col.id, text_value, number_value)
    except IntegrityError:
        # Lost an insert race for the same (row, column); the cell exists now
        db.rollback()
        return _upsert_cell(db, row.id, col.id, text_value, number_value)
