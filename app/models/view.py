# File: /app/models/view.py | Version: 2.0 | Title: SQLAlchemy model for per-table Views
from __future__ import annotations

import uuid
from sqlalchemy import Column, DateTime, ForeignKey, JSON, String, UniqueConstraint

from app.db.base_class import Base
from app.models.core_entities import utcnow


class View(Base):
    __tablename__ = "view"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    table_id = Column(
        String, ForeignKey("data_table.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name = Column(String, nullable=False)
    type = Column(String, nullable=False, default="GRID", server_default="GRID")

    # filters / sort / q / hidden_column_ids (+ passthrough keys), see schemas.view.ViewConfig
    config = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (UniqueConstraint("table_id", "name", name="uq_view_table_name"),)
