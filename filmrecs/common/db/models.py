from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from filmrecs.common.db.base import Base


class Film(Base):
    """Row of the read-only ``films`` catalog table."""

    __tablename__ = "films"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str | None] = mapped_column(String(300), nullable=True)
    release_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    tagline: Mapped[str | None] = mapped_column(Text, nullable=True)
    revenue: Mapped[int | None] = mapped_column(Integer, nullable=True)
    budget: Mapped[int | None] = mapped_column(Integer, nullable=True)
    runtime: Mapped[int | None] = mapped_column(Integer, nullable=True)
    original_language: Mapped[str | None] = mapped_column(String(20), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    genre_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
