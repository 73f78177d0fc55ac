# File: /app/crud/filtering.py | Version: 2.0 | Title: Predicate compiler (view config -> SQL conditions + resolved sort)
"""
Turns a view configuration into row-selection conditions over sparse cell
storage plus an optional resolved sort.

Configuration that no longer matches the table (deleted column, column whose
type changed, missing comparison value) is dropped here instead of raising, so
a stale view keeps working while the schema evolves.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from sqlalchemy import String, cast, exists, func, not_
from sqlalchemy.sql.elements import ColumnElement

from app.models import Cell, TableColumn, TableRow
from app.schemas.grid import ColumnType
from app.schemas.view import (
    EMPTY_CHECKS,
    NumberFilter,
    SortDirection,
    TextFilter,
    ViewConfig,
    ViewSort,
)

log = logging.getLogger(__name__)

ColumnTypes = Dict[str, ColumnType]
ResolvedFilter = Union[TextFilter, NumberFilter]


@dataclass(frozen=True)
class ResolvedSort:
    column_id: str
    column_type: ColumnType
    direction: SortDirection

    @property
    def descending(self) -> bool:
        return self.direction == SortDirection.desc


@dataclass
class CompiledView:
    conditions: List[ColumnElement] = field(default_factory=list)
    sort: Optional[ResolvedSort] = None
    filters: List[ResolvedFilter] = field(default_factory=list)
    search: Optional[str] = None


def column_types(columns: Iterable[TableColumn]) -> ColumnTypes:
    """id -> ColumnType for the table's current columns; unknown stored types are skipped."""
    out: ColumnTypes = {}
    for c in columns:
        try:
            out[str(c.id)] = ColumnType(c.type)
        except ValueError:
            log.warning("Column %s has unknown type %r; ignoring it for queries", c.id, c.type)
    return out


# ----------------------
# Resolution (pure)
# ----------------------
def _keep_text(columns: ColumnTypes, f: TextFilter) -> bool:
    col_type = columns.get(f.column_id)
    if col_type is None:
        log.debug("Dropping filter on missing column %s", f.column_id)
        return False
    if col_type != ColumnType.TEXT:
        log.debug("Dropping text filter on %s column %s", col_type.value, f.column_id)
        return False
    if f.op.value in EMPTY_CHECKS:
        return True
    return bool((f.value or "").strip())


def _keep_number(columns: ColumnTypes, f: NumberFilter) -> bool:
    col_type = columns.get(f.column_id)
    if col_type is None:
        log.debug("Dropping filter on missing column %s", f.column_id)
        return False
    if col_type != ColumnType.NUMBER:
        log.debug("Dropping number filter on %s column %s", col_type.value, f.column_id)
        return False
    if f.op.value in EMPTY_CHECKS:
        return True
    return f.value is not None and math.isfinite(f.value)


def resolve_filters(columns: ColumnTypes, filters: Iterable[ResolvedFilter]) -> List[ResolvedFilter]:
    active: List[ResolvedFilter] = []
    for f in filters:
        if isinstance(f, TextFilter):
            keep = _keep_text(columns, f)
        elif isinstance(f, NumberFilter):
            keep = _keep_number(columns, f)
        else:
            raise TypeError(f"Unsupported filter type: {type(f).__name__}")
        if keep:
            active.append(f)
    return active


def resolve_sort(columns: ColumnTypes, sort: Optional[ViewSort]) -> Optional[ResolvedSort]:
    if sort is None:
        return None
    col_type = columns.get(sort.column_id)
    if col_type is None:
        log.debug("Dropping sort on missing column %s", sort.column_id)
        return None
    return ResolvedSort(
        column_id=sort.column_id,
        column_type=col_type,
        direction=SortDirection(sort.direction),
    )


def resolve_search(config_q: Optional[str], search_override: Optional[str]) -> Optional[str]:
    """A per-request override (even a blank one) wins over the view's saved q."""
    term = search_override if search_override is not None else config_q
    if term is None:
        return None
    term = term.strip()
    return term or None


# ----------------------
# SQL expressions
# ----------------------
def _cell_exists(column_id: str, *criteria) -> ColumnElement:
    # Correlates on the enclosing query's TableRow
    return exists().where(
        Cell.row_id == TableRow.id,
        Cell.column_id == column_id,
        *criteria,
    )


def _text_expr(f: TextFilter) -> ColumnElement:
    op = f.op.value
    cid = f.column_id
    if op == "is_empty":
        return not_(_cell_exists(cid, Cell.text_value.is_not(None)))
    if op == "is_not_empty":
        return _cell_exists(cid, Cell.text_value.is_not(None))

    needle = (f.value or "").strip().lower()
    lowered = func.lower(Cell.text_value)
    if op == "contains":
        return _cell_exists(cid, lowered.contains(needle, autoescape=True))
    if op == "not_contains":
        return not_(_cell_exists(cid, lowered.contains(needle, autoescape=True)))
    if op == "equals":
        return _cell_exists(cid, lowered == needle)
    raise ValueError(f"Unsupported text operator: {op}")


def _number_expr(f: NumberFilter) -> ColumnElement:
    op = f.op.value
    cid = f.column_id
    if op == "is_empty":
        return not_(_cell_exists(cid, Cell.number_value.is_not(None)))
    if op == "is_not_empty":
        return _cell_exists(cid, Cell.number_value.is_not(None))

    val = float(f.value)
    if op == "gt":
        return _cell_exists(cid, Cell.number_value > val)
    if op == "lt":
        return _cell_exists(cid, Cell.number_value < val)
    if op == "equals":
        return _cell_exists(cid, Cell.number_value == val)
    raise ValueError(f"Unsupported number operator: {op}")


def filter_expr(f: ResolvedFilter) -> ColumnElement:
    if isinstance(f, TextFilter):
        return _text_expr(f)
    if isinstance(f, NumberFilter):
        return _number_expr(f)
    raise TypeError(f"Unsupported filter type: {type(f).__name__}")


def search_expr(term: str) -> ColumnElement:
    """Row has at least one cell (any column, numbers as text) containing term."""
    as_text = func.coalesce(Cell.text_value, cast(Cell.number_value, String), "")
    return exists().where(
        Cell.row_id == TableRow.id,
        func.lower(as_text).contains(term.lower(), autoescape=True),
    )


def compile_view(
    columns: ColumnTypes,
    config: ViewConfig,
    search_override: Optional[str] = None,
) -> CompiledView:
    filters = resolve_filters(columns, config.filters)
    search = resolve_search(config.q, search_override)

    conditions = [filter_expr(f) for f in filters]
    if search:
        conditions.append(search_expr(search))

    return CompiledView(
        conditions=conditions,
        sort=resolve_sort(columns, config.sort),
        filters=filters,
        search=search,
    )
