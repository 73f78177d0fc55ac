# File: /app/schemas/grid.py | Version: 1.0 | Title: Columns, rows, cells and row-page schemas
from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ColumnType(str, Enum):
    TEXT = "TEXT"
    NUMBER = "NUMBER"


# -------------------- Columns --------------------

class ColumnCreate(BaseModel):
    name: str = Field(default="", max_length=80)
    type: ColumnType


class ColumnRename(BaseModel):
    name: str = Field(min_length=1, max_length=80)


class ColumnReorder(BaseModel):
    column_ids: List[str]


class ColumnMove(BaseModel):
    direction: Literal["left", "right"]


class ColumnOut(BaseModel):
    id: str
    name: str
    type: ColumnType
    order: int

    model_config = ConfigDict(from_attributes=True)


class TableMetaOut(BaseModel):
    id: str
    name: str
    base_id: str
    columns: List[ColumnOut]
    row_count: int


# -------------------- Rows & cells --------------------

class CellValueIn(BaseModel):
    value: str  # raw user input, normalized server-side


class CellOut(BaseModel):
    column_id: str
    text_value: Optional[str] = None
    number_value: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class CellWriteOut(CellOut):
    row_id: str


class RowOut(BaseModel):
    id: str
    row_index: int
    cells: List[CellOut] = Field(default_factory=list)


class RowPageOut(BaseModel):
    rows: List[RowOut]
    next_cursor: Optional[str] = None


class AddRowsIn(BaseModel):
    # Upper bound is enforced against settings.ADD_ROWS_MAX in the crud layer
    count: int = Field(ge=1)


class AddRowsOut(BaseModel):
    added: int
    start_row_index: int
    end_row_index: int
