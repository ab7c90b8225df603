from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.pms.models import Base, UserRole

if TYPE_CHECKING:
    from app.pms.models import User
    from app.pms.modules.batches.models import Batch


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (
        Index("idx_students_batch_id", "batch_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    jntu_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)  # stored upper-case
    branch: Mapped[str | None] = mapped_column(String(64), nullable=True)
    batch_id: Mapped[int | None] = mapped_column(ForeignKey("batches.id", ondelete="SET NULL"), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="student_profile", lazy="selectin")
    batch: Mapped[Optional["Batch"]] = relationship("Batch", back_populates="students", lazy="selectin")

    @property
    def name(self) -> str:
        return self.user.name

    @validates("user")
    def _validate_user(self, _key, user):
        if user is not None and user.role != UserRole.STUDENT.value:
            raise ValueError("A student profile can only belong to a student account.")
        return user
