from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.pms.models import Base

if TYPE_CHECKING:
    from app.pms.modules.faculty.models import Faculty
    from app.pms.modules.student.models import Student


class Batch(Base):
    """A project team of students working under one faculty guide."""

    __tablename__ = "batches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    academic_year: Mapped[str] = mapped_column(String(16), nullable=False)  # e.g. "2025-26"
    project_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    guide_faculty_id: Mapped[int | None] = mapped_column(ForeignKey("faculty.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    guide: Mapped[Optional["Faculty"]] = relationship("Faculty", back_populates="batches", lazy="selectin")
    students: Mapped[list["Student"]] = relationship(
        "Student",
        back_populates="batch",
        lazy="selectin",
        order_by="Student.jntu_number",
    )
