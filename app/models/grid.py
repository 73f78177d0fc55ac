# File: /app/models/grid.py | Version: 1.0 | Title: Tables, columns, rows and sparse cells
from __future__ import annotations

from datetime import datetime
from typing import List as TList, Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base
from app.models.core_entities import gen_uuid, utcnow


class DataTable(Base):
    __tablename__ = "data_table"
    __table_args__ = (
        UniqueConstraint("base_id", "name", name="uq_data_table_base_name"),
        Index("ix_data_table_base_id_updated_at", "base_id", "updated_at"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    base_id: Mapped[str] = mapped_column(
        ForeignKey("base.id", ondelete="CASCADE"), index=True, nullable=False
    )
    # Next row_index to hand out; only ever grows, so indices are never reused
    next_row_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    columns: Mapped[TList["TableColumn"]] = relationship(
        back_populates="table", order_by="TableColumn.order", passive_deletes=True
    )


class TableColumn(Base):
    __tablename__ = "table_column"
    __table_args__ = (
        UniqueConstraint("table_id", "order", name="uq_table_column_table_order"),
        UniqueConstraint("table_id", "name", name="uq_table_column_table_name"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    table_id: Mapped[str] = mapped_column(
        ForeignKey("data_table.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # 'TEXT' | 'NUMBER'
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    table: Mapped["DataTable"] = relationship(back_populates="columns")


class TableRow(Base):
    __tablename__ = "table_row"
    __table_args__ = (
        UniqueConstraint("table_id", "row_index", name="uq_table_row_table_row_index"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    table_id: Mapped[str] = mapped_column(
        ForeignKey("data_table.id", ondelete="CASCADE"), index=True, nullable=False
    )
    row_index: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    cells: Mapped[TList["Cell"]] = relationship(back_populates="row", passive_deletes=True)


class Cell(Base):
    """
    Sparse value slot for one (row, column) pair. Exactly one of text_value /
    number_value is populated, picked by the column type at write time.
    """

    __tablename__ = "cell"
    __table_args__ = (
        UniqueConstraint("row_id", "column_id", name="uq_cell_row_column"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    row_id: Mapped[str] = mapped_column(
        ForeignKey("table_row.id", ondelete="CASCADE"), nullable=False
    )
    column_id: Mapped[str] = mapped_column(
        ForeignKey("table_column.id", ondelete="CASCADE"), index=True, nullable=False
    )
    text_value: Mapped[Optional[str]] = mapped_column(Text)
    number_value: Mapped[Optional[float]] = mapped_column(Float)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    row: Mapped["TableRow"] = relationship(back_populates="cells")
