# File: /app/routers/core_entities.py | Version: 2.0 | Path: /app/routers/core_entities.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.crud import core_entities as crud_core
from app.db.session import get_db
from app.models import User
from app.schemas import core_entities as schema
from app.security import get_current_user

router = APIRouter(tags=["Core Entities"])

# ----- WORKSPACE ROUTES -----


@router.post("/workspaces/", response_model=schema.WorkspaceOut, status_code=status.HTTP_201_CREATED)
def create_workspace(
    data: schema.WorkspaceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_core.create_workspace(db, data, owner_id=str(current_user.id))


@router.get("/workspaces/", response_model=List[schema.WorkspaceOut])
def get_my_workspaces(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_core.get_workspaces_for_user(db, user_id=str(current_user.id))


@router.get("/workspaces/{workspace_id}", response_model=schema.WorkspaceDetailOut)
def get_workspace(
    workspace_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_core.get_workspace(db, user_id=current_user.id, workspace_id=workspace_id)


@router.patch("/workspaces/{workspace_id}", response_model=schema.WorkspaceOut)
def rename_workspace(
    workspace_id: str,
    data: schema.WorkspaceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_core.update_workspace(
        db, user_id=current_user.id, workspace_id=workspace_id, data=data
    )


@router.delete("/workspaces/{workspace_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_workspace(
    workspace_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    crud_core.delete_workspace(db, user_id=current_user.id, workspace_id=workspace_id)


# ----- BASE ROUTES -----


@router.post(
    "/workspaces/{workspace_id}/bases",
    response_model=schema.BaseOut,
    status_code=status.HTTP_201_CREATED,
)
def create_base(
    workspace_id: str,
    data: schema.BaseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_core.create_base(db, user_id=current_user.id, workspace_id=workspace_id, data=data)


@router.get("/workspaces/{workspace_id}/bases", response_model=List[schema.BaseOut])
def get_bases(
    workspace_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_core.get_bases_by_workspace(db, user_id=current_user.id, workspace_id=workspace_id)


@router.get("/bases/{base_id}", response_model=schema.BaseOut)
def get_base(
    base_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_core.get_base(db, user_id=current_user.id, base_id=base_id)


@router.get("/bases/{base_id}/workspace", response_model=schema.WorkspaceOut)
def get_workspace_for_base(
    base_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_core.get_workspace_for_base(db, user_id=current_user.id, base_id=base_id)


@router.patch("/bases/{base_id}", response_model=schema.BaseOut)
def rename_base(
    base_id: str,
    data: schema.BaseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_core.update_base(db, user_id=current_user.id, base_id=base_id, data=data)


@router.delete("/bases/{base_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_base(
    base_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    crud_core.delete_base(db, user_id=current_user.id, base_id=base_id)


# ----- TABLE ROUTES -----


@router.get("/bases/{base_id}/tables", response_model=List[schema.TableOut])
def get_tables(
    base_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_core.get_tables_by_base(db, user_id=current_user.id, base_id=base_id)


@router.post(
    "/bases/{base_id}/tables",
    response_model=schema.TableCreatedOut,
    status_code=status.HTTP_201_CREATED,
)
def create_table(
    base_id: str,
    data: schema.TableCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_core.create_table(db, user_id=current_user.id, base_id=base_id, data=data)
