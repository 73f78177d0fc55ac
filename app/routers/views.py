# File: /app/routers/views.py | Version: 2.0 | Title: Views Router (per-table views + config patch)
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.crud.view import (
    create_view,
    delete_view as crud_delete_view,
    get_view,
    list_views as crud_list_views,
    rename_view,
    update_view_config,
)
from app.db.session import get_db
from app.models import User
from app.schemas.view import (
    ViewConfigOut,
    ViewConfigPatch,
    ViewCreate,
    ViewOut,
    ViewRename,
    ViewSummaryOut,
)
from app.security import get_current_user

router = APIRouter(tags=["Views"])


def _view_out(v, config) -> dict:
    return {
        "id": v.id,
        "name": v.name,
        "type": v.type,
        "config": config.model_dump(mode="json"),
    }


@router.get(
    "/tables/{table_id}/views",
    response_model=List[ViewSummaryOut],
    summary="List the views of a table",
)
def list_views(
    table_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_list_views(db, user_id=current_user.id, table_id=table_id)


@router.post(
    "/tables/{table_id}/views",
    response_model=ViewSummaryOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a view with an empty config",
)
def create_view_endpoint(
    table_id: str,
    data: ViewCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return create_view(db, user_id=current_user.id, table_id=table_id, name=data.name)


@router.get("/views/{view_id}", response_model=ViewOut, summary="Get a view and its config")
def get_view_endpoint(
    view_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    v, config = get_view(db, user_id=current_user.id, view_id=view_id)
    return _view_out(v, config)


@router.patch("/views/{view_id}", response_model=ViewSummaryOut, summary="Rename a view")
def rename_view_endpoint(
    view_id: str,
    data: ViewRename,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return rename_view(db, user_id=current_user.id, view_id=view_id, name=data.name)


@router.delete(
    "/views/{view_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a view (a table keeps at least one)",
)
def delete_view_endpoint(
    view_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    crud_delete_view(db, user_id=current_user.id, view_id=view_id)


@router.patch(
    "/views/{view_id}/config",
    response_model=ViewConfigOut,
    summary="Patch filters / sort / q / hidden columns",
)
def update_view_config_endpoint(
    view_id: str,
    patch: ViewConfigPatch,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    v, config = update_view_config(db, user_id=current_user.id, view_id=view_id, patch=patch)
    return {"id": v.id, "config": config.model_dump(mode="json")}
