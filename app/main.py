# File: /app/main.py | Version: 2.0 | Title: FastAPI App (router includes + domain error handlers)
from __future__ import annotations

from fastapi import FastAPI

from app.core.error_handlers import register_exception_handlers
from app.core.logging import configure_logging
from app.observability.sentry import init_sentry_if_configured
from app.routers import auth, core_entities, grid, health, views

# Initialize logging & observability
configure_logging()
init_sentry_if_configured()

app = FastAPI(title="Gridbase API")

app.include_router(auth.router)
app.include_router(core_entities.router)
app.include_router(grid.router)
app.include_router(views.router)
app.include_router(health.router)

# DomainError -> status mapping always; full envelope only with ENABLE_STD_ERRORS
register_exception_handlers(app)
