# File: /app/schemas/core_entities.py | Version: 3.0
from __future__ import annotations

from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.grid import ColumnOut


# -------------------- Workspace --------------------

class WorkspaceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=80)


class WorkspaceUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=80)


class WorkspaceOut(BaseModel):
    id: str
    name: str
    owner_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# -------------------- Base --------------------

class BaseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=80)


class BaseUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=80)


class BaseOut(BaseModel):
    id: str
    name: str
    workspace_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WorkspaceDetailOut(WorkspaceOut):
    bases: List[BaseOut] = Field(default_factory=list)


# -------------------- Table --------------------

class TableCreate(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    # None -> settings.TABLE_SEED_ROWS
    seed_rows: Optional[int] = Field(default=None, ge=0, le=1000)


class TableOut(BaseModel):
    id: str
    name: str
    base_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TableCreatedOut(BaseModel):
    table: TableOut
    columns: List[ColumnOut]
    seeded_rows: int
    default_view_id: str
