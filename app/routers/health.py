# File: app/routers/health.py | Version: 1.1 | Title: Health & readiness endpoints
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.db.session import engine

log = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/healthz")
def healthz() -> dict:
    """Liveness: the process is serving requests."""
    return {"status": "ok"}


@router.get("/readyz")
def readyz():
    """Readiness: 200 when the database answers SELECT 1, else 503."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        log.warning("Readiness check failed: database unreachable")
        return JSONResponse({"status": "degraded", "db": "error"}, status_code=503)
    return {"status": "ok", "db": "ok"}
