# File: /app/crud/pagination.py | Version: 1.0 | Title: Row pagination engine (unsorted row_index keyset / sorted value keyset)
"""
Serves one bounded page of rows for a compiled view.

Two strategies, picked per request from the compiled view:

* UNSORTED: keyset on ``row_index``. The cursor is the next row_index to read.
* SORTED: keyset on ``(null_rank, sort_value, row_index)`` mirroring
  ``ORDER BY null_rank ASC, sort_value {ASC|DESC}, row_index ASC``.
  Nulls sort last in both directions.

Cursors are opaque URL-safe tokens tagged with the mode (and, for sorted
pages, the sort column, its type and direction). A token minted under a
different configuration is ignored and the request starts from the first page.

Pages are produced in two phases: ``match_rows`` finds the ordered row keys,
``hydrate_rows`` loads rows and cells for exactly those ids.
"""
from __future__ import annotations

import base64
import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import and_, case, or_, select
from sqlalchemy.orm import Session, aliased, selectinload

from app.core.config import settings
from app.crud.filtering import ColumnTypes, CompiledView, ResolvedSort
from app.models import Cell, TableRow
from app.schemas.grid import ColumnType

log = logging.getLogger(__name__)

MODE_UNSORTED = "rows"
MODE_SORTED = "sorted"
MAX_ROW_INDEX = 2**63 - 1


@dataclass(frozen=True)
class RowKey:
    row_id: str
    row_index: int
    null_rank: int = 0
    sort_value: Any = None


@dataclass(frozen=True)
class UnsortedCursor:
    start: int


@dataclass(frozen=True)
class SortedCursor:
    null_rank: int
    value: Any
    row_index: int


Cursor = Union[UnsortedCursor, SortedCursor]


@dataclass
class RowPage:
    rows: List[Dict[str, Any]]
    next_cursor: Optional[str]


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return settings.ROW_PAGE_DEFAULT
    return max(settings.ROW_PAGE_MIN, min(settings.ROW_PAGE_MAX, int(limit)))


# -----------------------------
# Cursor codec
# -----------------------------
def _encode(payload: Dict[str, Any]) -> str:
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _is_index(v: Any) -> bool:
    # row_index is stored as a signed 64-bit INTEGER
    return _is_int(v) and 0 <= v <= MAX_ROW_INDEX


def _finite_number(v: Any) -> Optional[float]:
    if not (_is_int(v) or isinstance(v, float)):
        return None
    try:
        out = float(v)
    except OverflowError:
        return None
    return out if math.isfinite(out) else None


def cursor_after(key: RowKey, sort: Optional[ResolvedSort]) -> str:
    """Token that resumes right after ``key``."""
    if sort is None:
        return _encode({"m": MODE_UNSORTED, "i": key.row_index + 1})
    return _encode(
        {
            "m": MODE_SORTED,
            "c": sort.column_id,
            "t": sort.column_type.value,
            "d": sort.direction.value,
            "r": key.null_rank,
            "v": key.sort_value,
            "i": key.row_index,
        }
    )


def decode_cursor(token: Optional[str], sort: Optional[ResolvedSort]) -> Optional[Cursor]:
    """
    Parse a cursor for the current sort. Returns None (start from the top)
    when the token is unreadable or belongs to another mode / sort.
    """
    if not token:
        return None
    try:
        padded = token + "=" * (-len(token) % 4)
        raw = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (ValueError, RecursionError):
        log.debug("Ignoring unreadable cursor")
        return None
    if not isinstance(raw, dict):
        return None

    if sort is None:
        start = raw.get("i")
        if raw.get("m") != MODE_UNSORTED or not _is_index(start):
            log.debug("Cursor does not match unsorted mode; restarting")
            return None
        return UnsortedCursor(start=start)

    if (
        raw.get("m") != MODE_SORTED
        or raw.get("c") != sort.column_id
        or raw.get("t") != sort.column_type.value
        or raw.get("d") != sort.direction.value
    ):
        log.debug("Cursor was issued for another sort; restarting")
        return None

    rank, value, row_index = raw.get("r"), raw.get("v"), raw.get("i")
    if not _is_int(rank) or rank not in (0, 1) or not _is_index(row_index):
        return None
    if rank == 1:
        return SortedCursor(null_rank=1, value=None, row_index=row_index)
    if sort.column_type == ColumnType.NUMBER:
        value = _finite_number(value)
        if value is None:
            return None
    elif not isinstance(value, str):
        return None
    return SortedCursor(null_rank=0, value=value, row_index=row_index)


# -----------------------------
# Phase 1: match
# -----------------------------
def _match_unsorted(
    db: Session, table_id: str, compiled: CompiledView, cursor: Optional[UnsortedCursor], limit: int
) -> List[RowKey]:
    start = cursor.start if cursor else 0
    stmt = (
        select(TableRow.id, TableRow.row_index)
        .where(TableRow.table_id == table_id, TableRow.row_index >= start, *compiled.conditions)
        .order_by(TableRow.row_index.asc())
        .limit(limit)
    )
    return [RowKey(row_id=r.id, row_index=r.row_index) for r in db.execute(stmt)]


def _keyset_after(value, cursor: SortedCursor, descending: bool):
    after_index = TableRow.row_index > cursor.row_index
    if cursor.null_rank == 1:
        # Only more nulls can follow a null
        return and_(value.is_(None), after_index)
    beyond = value < cursor.value if descending else value > cursor.value
    return or_(value.is_(None), beyond, and_(value == cursor.value, after_index))


def _match_sorted(
    db: Session,
    table_id: str,
    compiled: CompiledView,
    cursor: Optional[SortedCursor],
    limit: int,
) -> List[RowKey]:
    sort = compiled.sort
    sort_cell = aliased(Cell)
    # A value stored in the slot that does not match the column type reads as null
    value = sort_cell.number_value if sort.column_type == ColumnType.NUMBER else sort_cell.text_value
    null_rank = case((value.is_(None), 1), else_=0)

    stmt = (
        select(
            TableRow.id,
            TableRow.row_index,
            null_rank.label("null_rank"),
            value.label("sort_value"),
        )
        .outerjoin(
            sort_cell,
            and_(sort_cell.row_id == TableRow.id, sort_cell.column_id == sort.column_id),
        )
        .where(TableRow.table_id == table_id, *compiled.conditions)
    )
    if cursor is not None:
        stmt = stmt.where(_keyset_after(value, cursor, sort.descending))

    stmt = stmt.order_by(
        null_rank.asc(),
        value.desc() if sort.descending else value.asc(),
        TableRow.row_index.asc(),
    ).limit(limit)

    return [
        RowKey(
            row_id=r.id,
            row_index=r.row_index,
            null_rank=int(r.null_rank),
            sort_value=r.sort_value,
        )
        for r in db.execute(stmt)
    ]


def match_rows(
    db: Session,
    table_id: str,
    compiled: CompiledView,
    cursor: Optional[Cursor],
    limit: int,
) -> List[RowKey]:
    if compiled.sort is None:
        return _match_unsorted(db, table_id, compiled, cursor, limit)
    return _match_sorted(db, table_id, compiled, cursor, limit)


# -----------------------------
# Phase 2: hydrate
# -----------------------------
def _cell_payload(cell: Cell, col_type: Optional[ColumnType]) -> Optional[Dict[str, Any]]:
    if col_type == ColumnType.TEXT and cell.text_value is not None:
        return {"column_id": cell.column_id, "text_value": cell.text_value, "number_value": None}
    if col_type == ColumnType.NUMBER and cell.number_value is not None:
        return {"column_id": cell.column_id, "text_value": None, "number_value": cell.number_value}
    # null value, or value in the slot the column type does not use
    return None


def hydrate_rows(db: Session, row_ids: List[str], columns: ColumnTypes) -> List[Dict[str, Any]]:
    if not row_ids:
        return []
    loaded = (
        db.query(TableRow)
        .options(selectinload(TableRow.cells))
        .filter(TableRow.id.in_(row_ids))
        .all()
    )
    by_id = {r.id: r for r in loaded}

    out: List[Dict[str, Any]] = []
    for rid in row_ids:
        row = by_id.get(rid)
        if row is None:
            continue
        cells = [_cell_payload(c, columns.get(c.column_id)) for c in row.cells]
        out.append(
            {
                "id": row.id,
                "row_index": row.row_index,
                "cells": [c for c in cells if c is not None],
            }
        )
    return out


def fetch_page(
    db: Session,
    table_id: str,
    compiled: CompiledView,
    columns: ColumnTypes,
    cursor: Optional[str],
    limit: int,
) -> RowPage:
    decoded = decode_cursor(cursor, compiled.sort)
    keys = match_rows(db, table_id, compiled, decoded, limit)
    rows = hydrate_rows(db, [k.row_id for k in keys], columns)

    # Full page -> there may be more
    next_cursor = cursor_after(keys[-1], compiled.sort) if keys and len(keys) == limit else None
    return RowPage(rows=rows, next_cursor=next_cursor)
