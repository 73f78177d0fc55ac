# File: /app/crud/columns.py | Version: 1.0 | Title: Column mutations (add / rename / delete / reorder / move)
from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy import delete, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, InvalidInputError
from app.core.ownership import get_owned_column, get_owned_table
from app.models import Cell, TableColumn
from app.schemas.grid import ColumnType

log = logging.getLogger(__name__)

DEFAULT_COLUMN_NAME = "Field"


def _columns_in_order(db: Session, table_id: str) -> List[TableColumn]:
    return (
        db.query(TableColumn)
        .filter(TableColumn.table_id == table_id)
        .order_by(TableColumn.order.asc())
        .all()
    )


def unique_column_name(existing: List[str], requested: str) -> str:
    """'Name' -> 'Name 2' -> 'Name 3' ... compared case-insensitively."""
    used = {n.lower() for n in existing}
    base = requested.strip() or DEFAULT_COLUMN_NAME
    name = base
    i = 2
    while name.lower() in used:
        name = f"{base} {i}"
        i += 1
    return name


def _reassign_orders(db: Session, table_id: str, ordered_ids: List[str]) -> None:
    """
    Rewrite a table's column orders to 0..n-1 following ``ordered_ids``.

    (table_id, order) is unique, so every existing order is first moved out
    of the target range, then final values are written. Caller commits.
    """
    db.execute(
        update(TableColumn)
        .where(TableColumn.table_id == table_id)
        .values(order=TableColumn.order + settings.COLUMN_ORDER_SHIFT)
        .execution_options(synchronize_session=False)
    )
    for position, column_id in enumerate(ordered_ids):
        db.execute(
            update(TableColumn)
            .where(TableColumn.id == column_id, TableColumn.table_id == table_id)
            .values(order=position)
            .execution_options(synchronize_session=False)
        )


# ---------------------------
# Add / rename / delete
# ---------------------------


def add_column(
    db: Session, *, user_id: Any, table_id: Any, name: str, type: ColumnType
) -> TableColumn:
    table = get_owned_table(db, user_id=user_id, table_id=table_id)

    max_order: Optional[int] = (
        db.query(func.max(TableColumn.order))
        .filter(TableColumn.table_id == table.id)
        .scalar()
    )
    existing = [
        n for (n,) in db.query(TableColumn.name).filter(TableColumn.table_id == table.id)
    ]

    col = TableColumn(
        table_id=table.id,
        name=unique_column_name(existing, name or ""),
        type=ColumnType(type).value,
        order=(max_order if max_order is not None else -1) + 1,
    )
    db.add(col)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Columns changed while adding; please retry")
    db.refresh(col)
    return col


def rename_column(db: Session, *, user_id: Any, column_id: Any, name: str) -> TableColumn:
    col = get_owned_column(db, user_id=user_id, column_id=column_id)
    next_name = (name or "").strip()
    if not next_name:
        raise InvalidInputError("Name required")

    clash = (
        db.query(TableColumn.id)
        .filter(
            TableColumn.table_id == col.table_id,
            TableColumn.id != col.id,
            func.lower(TableColumn.name) == next_name.lower(),
        )
        .first()
    )
    if clash:
        raise ConflictError("A column with that name already exists")

    col.name = next_name
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A column with that name already exists")
    db.refresh(col)
    return col


def delete_column(db: Session, *, user_id: Any, column_id: Any) -> None:
    col = get_owned_column(db, user_id=user_id, column_id=column_id)
    col_id = col.id
    try:
        db.execute(
            delete(Cell)
            .where(Cell.column_id == col_id)
            .execution_options(synchronize_session=False)
        )
        db.delete(col)
        db.commit()
    except Exception:
        db.rollback()
        raise
    log.info("Deleted column %s and its cells", col_id)


# ---------------------------
# Ordering
# ---------------------------


def reorder_columns(
    db: Session, *, user_id: Any, table_id: Any, ordered_ids: List[str]
) -> List[TableColumn]:
    table = get_owned_table(db, user_id=user_id, table_id=table_id)
    current = [c.id for c in _columns_in_order(db, table.id)]

    requested = [str(c) for c in ordered_ids]
    if len(requested) != len(current) or len(set(requested)) != len(requested):
        raise InvalidInputError("column_ids must list every column of the table exactly once")
    if set(requested) != set(current):
        raise InvalidInputError("column_ids must list every column of the table exactly once")

    try:
        _reassign_orders(db, table.id, requested)
        db.commit()
    except Exception:
        db.rollback()
        raise
    log.info("Reordered %d columns on table %s", len(requested), table.id)
    return _columns_in_order(db, table.id)


def move_column(db: Session, *, user_id: Any, column_id: Any, direction: str) -> List[TableColumn]:
    """Swap a column with its left or right neighbour; moving past an edge is a no-op."""
    if direction not in ("left", "right"):
        raise InvalidInputError("direction must be 'left' or 'right'")
    col = get_owned_column(db, user_id=user_id, column_id=column_id)
    table_id = col.table_id
    ids = [c.id for c in _columns_in_order(db, table_id)]

    idx = ids.index(col.id)
    target = idx - 1 if direction == "left" else idx + 1
    if target < 0 or target >= len(ids):
        return _columns_in_order(db, table_id)

    ids[idx], ids[target] = ids[target], ids[idx]
    try:
        _reassign_orders(db, table_id, ids)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return _columns_in_order(db, table_id)
