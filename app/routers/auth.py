# File: /app/routers/auth.py | Version: 3.0 | Title: Auth Router (register / login / OAuth2 form token / refresh / me) + Default Workspace
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.core_entities import User, Workspace
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from app.security import (
    authenticate,
    decode_token,
    get_current_user,
    get_password_hash,
    issue_tokens,
)

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


class RefreshRequest(BaseModel):
    refresh_token: str


# ---------------------------
# Utilities
# ---------------------------


def _ensure_default_workspace(db: Session, user: User) -> None:
    """Registration always leaves the user with at least one workspace."""
    existing = db.query(Workspace.id).filter(Workspace.owner_id == str(user.id)).first()
    if existing:
        return
    label = user.full_name or (user.email or "user").split("@", 1)[0]
    db.add(Workspace(name=f"{label}'s Workspace", owner_id=str(user.id)))
    db.commit()


def _bad_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Incorrect email or password",
    )


# ---------------------------
# Endpoints
# ---------------------------


@router.post("/register", response_model=UserResponse)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """
    Register a user. Idempotent: an existing email answers 200 with the
    stored user, and the default workspace is created if it is missing.
    """
    email = payload.email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user:
        user = User(
            email=email,
            full_name=payload.full_name,
            hashed_password=get_password_hash(payload.password),
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        log.info("Registered user %s", user.id)

    _ensure_default_workspace(db, user)
    return user


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, payload.email, payload.password)
    if not user:
        raise _bad_credentials()
    return issue_tokens(user)


@router.post("/token", response_model=TokenResponse)
def login_oauth_form(
    db: Session = Depends(get_db),
    username: str = Form(...),
    password: str = Form(...),
):
    """OAuth2 password form variant; ``username`` carries the email."""
    user = authenticate(db, username, password)
    if not user:
        raise _bad_credentials()
    return issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse)
def refresh(payload: RefreshRequest, db: Session = Depends(get_db)):
    user_id = decode_token(payload.refresh_token, "refresh")
    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    return issue_tokens(user)


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
