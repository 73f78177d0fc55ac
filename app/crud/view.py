# File: /app/crud/view.py | Version: 2.0 | Title: CRUD helpers for table views and their stored config
from __future__ import annotations

import logging
from typing import Any, List, Tuple

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, InvalidInputError
from app.core.ownership import get_owned_table, get_owned_view
from app.models.view import View
from app.schemas.view import ViewConfig, ViewConfigPatch

log = logging.getLogger(__name__)

DEFAULT_VIEW_NAME = "Grid view"


def default_config() -> dict:
    return ViewConfig().model_dump(mode="json")


def _dump_config(config: ViewConfig) -> dict:
    # Unknown keys ride along in model_extra and are included by model_dump
    return config.model_dump(mode="json")


def list_views(db: Session, *, user_id: Any, table_id: Any) -> List[View]:
    table = get_owned_table(db, user_id=user_id, table_id=table_id)
    return (
        db.query(View)
        .filter(View.table_id == table.id)
        .order_by(View.created_at.asc(), View.name.asc())
        .all()
    )


def get_view(db: Session, *, user_id: Any, view_id: Any) -> Tuple[View, ViewConfig]:
    view = get_owned_view(db, user_id=user_id, view_id=view_id)
    return view, ViewConfig.from_stored(view.config)


def _name_taken(db: Session, table_id: str, name: str, exclude_id: str = None) -> bool:
    q = db.query(View.id).filter(View.table_id == table_id, View.name == name)
    if exclude_id is not None:
        q = q.filter(View.id != exclude_id)
    return q.first() is not None


def create_view(db: Session, *, user_id: Any, table_id: Any, name: str) -> View:
    table = get_owned_table(db, user_id=user_id, table_id=table_id)
    clean = (name or "").strip()
    if not clean:
        raise InvalidInputError("Name required")
    if _name_taken(db, table.id, clean):
        raise ConflictError("A view with that name already exists")

    v = View(table_id=table.id, name=clean, type="GRID", config=default_config())
    db.add(v)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A view with that name already exists")
    db.refresh(v)
    return v


def rename_view(db: Session, *, user_id: Any, view_id: Any, name: str) -> View:
    v = get_owned_view(db, user_id=user_id, view_id=view_id)
    clean = (name or "").strip()
    if not clean:
        raise InvalidInputError("Name required")
    if _name_taken(db, v.table_id, clean, exclude_id=v.id):
        raise ConflictError("A view with that name already exists")

    v.name = clean
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A view with that name already exists")
    db.refresh(v)
    return v


def delete_view(db: Session, *, user_id: Any, view_id: Any) -> None:
    v = get_owned_view(db, user_id=user_id, view_id=view_id)
    remaining = db.query(View).filter(View.table_id == v.table_id).count()
    if remaining <= 1:
        raise InvalidInputError("Cannot delete the last view")
    db.delete(v)
    db.commit()


def update_view_config(
    db: Session, *, user_id: Any, view_id: Any, patch: ViewConfigPatch
) -> Tuple[View, ViewConfig]:
    """
    Shallow-merge ``patch`` over the stored config and save the result.
    Keys absent from the patch keep their stored value, unknown keys included.
    """
    v = get_owned_view(db, user_id=user_id, view_id=view_id)
    current = ViewConfig.from_stored(v.config)

    merged = {
        **_dump_config(current),
        **patch.model_dump(mode="json", exclude_unset=True),
        **(patch.model_extra or {}),
    }
    try:
        config = ViewConfig.model_validate(merged)
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid view config: {exc.error_count()} error(s)")

    # Reassign so the JSON column is flagged dirty
    v.config = _dump_config(config)
    db.commit()
    db.refresh(v)
    log.debug("Saved config for view %s", v.id)
    return v, config
