# File: /app/crud/core_entities.py | Version: 2.0 | Path: /app/crud/core_entities.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from faker import Faker
from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, InvalidInputError
from app.core.ownership import get_owned_base, get_owned_table, get_owned_workspace
from app.crud.rows import blank_row_mappings
from app.crud.view import DEFAULT_VIEW_NAME, default_config
from app.models import BaseEntity, Cell, DataTable, TableColumn, TableRow, View, Workspace
from app.models.core_entities import gen_uuid
from app.schemas import core_entities as schema
from app.schemas.grid import ColumnType

log = logging.getLogger(__name__)

DEFAULT_COLUMNS = (
    ("Name", ColumnType.TEXT),
    ("Notes", ColumnType.TEXT),
    ("Amount", ColumnType.NUMBER),
)


_faker = Faker()


def _sample_value(column_name: str) -> Dict[str, Any]:
    if column_name == "Name":
        return {"text_value": _faker.name(), "number_value": None}
    if column_name == "Notes":
        return {"text_value": _faker.sentence(), "number_value": None}
    return {"text_value": None, "number_value": round(_faker.random.uniform(0, 10_000), 2)}


def _sample_cell_mappings(columns: List[TableColumn], rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One filled cell per (seed row, default column)."""
    return [
        {"id": gen_uuid(), "row_id": row["id"], "column_id": col.id, **_sample_value(col.name)}
        for row in rows
        for col in columns
    ]


def _clean_name(name: Optional[str]) -> str:
    clean = (name or "").strip()
    if not clean:
        raise InvalidInputError("Name required")
    return clean


def _purge_tables(db: Session, table_ids) -> None:
    """Bulk-delete tables and everything under them; caller commits."""
    row_ids = select(TableRow.id).where(TableRow.table_id.in_(table_ids))
    opts = {"synchronize_session": False}
    db.execute(delete(Cell).where(Cell.row_id.in_(row_ids)).execution_options(**opts))
    db.execute(delete(TableRow).where(TableRow.table_id.in_(table_ids)).execution_options(**opts))
    db.execute(
        delete(TableColumn).where(TableColumn.table_id.in_(table_ids)).execution_options(**opts)
    )
    db.execute(delete(View).where(View.table_id.in_(table_ids)).execution_options(**opts))
    db.execute(delete(DataTable).where(DataTable.id.in_(table_ids)).execution_options(**opts))


# ----- WORKSPACE CRUD -----


def create_workspace(db: Session, data: schema.WorkspaceCreate, owner_id: str) -> Workspace:
    ws = Workspace(name=_clean_name(data.name), owner_id=str(owner_id))
    db.add(ws)
    db.commit()
    db.refresh(ws)
    return ws


def get_workspaces_for_user(db: Session, user_id: str) -> List[Workspace]:
    return (
        db.query(Workspace)
        .filter(Workspace.owner_id == str(user_id))
        .order_by(Workspace.created_at.desc())
        .all()
    )


def get_workspace(db: Session, *, user_id: Any, workspace_id: Any) -> Workspace:
    return get_owned_workspace(db, user_id=user_id, workspace_id=workspace_id)


def update_workspace(
    db: Session, *, user_id: Any, workspace_id: Any, data: schema.WorkspaceUpdate
) -> Workspace:
    ws = get_owned_workspace(db, user_id=user_id, workspace_id=workspace_id)
    ws.name = _clean_name(data.name)
    db.commit()
    db.refresh(ws)
    return ws


def delete_workspace(db: Session, *, user_id: Any, workspace_id: Any) -> None:
    ws = get_owned_workspace(db, user_id=user_id, workspace_id=workspace_id)
    base_ids = select(BaseEntity.id).where(BaseEntity.workspace_id == ws.id)
    table_ids = select(DataTable.id).where(DataTable.base_id.in_(base_ids))
    try:
        _purge_tables(db, table_ids)
        db.execute(
            delete(BaseEntity)
            .where(BaseEntity.workspace_id == ws.id)
            .execution_options(synchronize_session=False)
        )
        db.execute(
            delete(Workspace)
            .where(Workspace.id == ws.id)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise


# ----- BASE CRUD -----


def create_base(
    db: Session, *, user_id: Any, workspace_id: Any, data: schema.BaseCreate
) -> BaseEntity:
    ws = get_owned_workspace(db, user_id=user_id, workspace_id=workspace_id)
    base = BaseEntity(name=_clean_name(data.name), workspace_id=ws.id)
    db.add(base)
    db.commit()
    db.refresh(base)
    return base


def get_bases_by_workspace(db: Session, *, user_id: Any, workspace_id: Any) -> List[BaseEntity]:
    ws = get_owned_workspace(db, user_id=user_id, workspace_id=workspace_id)
    return (
        db.query(BaseEntity)
        .filter(BaseEntity.workspace_id == ws.id)
        .order_by(BaseEntity.updated_at.desc())
        .all()
    )


def get_base(db: Session, *, user_id: Any, base_id: Any) -> BaseEntity:
    return get_owned_base(db, user_id=user_id, base_id=base_id)


def get_workspace_for_base(db: Session, *, user_id: Any, base_id: Any) -> Workspace:
    base = get_owned_base(db, user_id=user_id, base_id=base_id)
    return base.workspace


def update_base(db: Session, *, user_id: Any, base_id: Any, data: schema.BaseUpdate) -> BaseEntity:
    base = get_owned_base(db, user_id=user_id, base_id=base_id)
    base.name = _clean_name(data.name)
    db.commit()
    db.refresh(base)
    return base


def delete_base(db: Session, *, user_id: Any, base_id: Any) -> None:
    base = get_owned_base(db, user_id=user_id, base_id=base_id)
    try:
        _purge_tables(db, select(DataTable.id).where(DataTable.base_id == base.id))
        db.execute(
            delete(BaseEntity)
            .where(BaseEntity.id == base.id)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise


# ----- TABLE CRUD -----


def get_tables_by_base(db: Session, *, user_id: Any, base_id: Any) -> List[DataTable]:
    base = get_owned_base(db, user_id=user_id, base_id=base_id)
    return (
        db.query(DataTable)
        .filter(DataTable.base_id == base.id)
        .order_by(DataTable.updated_at.desc())
        .all()
    )


def create_table(
    db: Session, *, user_id: Any, base_id: Any, data: schema.TableCreate
) -> Dict[str, Any]:
    """
    Create a table with the default columns, ``seed_rows`` rows filled with
    sample data (blank when TABLE_SEED_FAKE_DATA is off) and a default grid
    view, all in one transaction.
    """
    base = get_owned_base(db, user_id=user_id, base_id=base_id)
    name = _clean_name(data.name)
    seed = settings.TABLE_SEED_ROWS if data.seed_rows is None else data.seed_rows

    exists = (
        db.query(DataTable.id)
        .filter(DataTable.base_id == base.id, func.lower(DataTable.name) == name.lower())
        .first()
    )
    if exists:
        raise ConflictError("A table with that name already exists")

    table = DataTable(name=name, base_id=base.id, next_row_index=seed)
    try:
        db.add(table)
        db.flush()

        columns = [
            TableColumn(table_id=table.id, name=col_name, type=col_type.value, order=i)
            for i, (col_name, col_type) in enumerate(DEFAULT_COLUMNS)
        ]
        db.add_all(columns)
        db.flush()
        if seed:
            rows = blank_row_mappings(table.id, 0, seed)
            db.execute(insert(TableRow), rows)
            if settings.TABLE_SEED_FAKE_DATA:
                db.execute(insert(Cell), _sample_cell_mappings(columns, rows))

        view = View(table_id=table.id, name=DEFAULT_VIEW_NAME, type="GRID", config=default_config())
        db.add(view)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A table with that name already exists")
    except Exception:
        db.rollback()
        raise

    db.refresh(table)
    log.info("Created table %s with %d seed rows", table.id, seed)
    return {
        "table": table,
        "columns": sorted(columns, key=lambda c: c.order),
        "seeded_rows": seed,
        "default_view_id": view.id,
    }


def get_table_meta(db: Session, *, user_id: Any, table_id: Any) -> Dict[str, Any]:
    table = get_owned_table(db, user_id=user_id, table_id=table_id)
    columns = (
        db.query(TableColumn)
        .filter(TableColumn.table_id == table.id)
        .order_by(TableColumn.order.asc())
        .all()
    )
    row_count = db.query(func.count(TableRow.id)).filter(TableRow.table_id == table.id).scalar()
    return {
        "id": table.id,
        "name": table.name,
        "base_id": table.base_id,
        "columns": columns,
        "row_count": int(row_count or 0),
    }
