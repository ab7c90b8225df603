from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.pms.models import Base, UserRole

if TYPE_CHECKING:
    from app.pms.models import User
    from app.pms.modules.batches.models import Batch


class Faculty(Base):
    __tablename__ = "faculty"
    __table_args__ = (
        Index("idx_faculty_department", "department"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    employee_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    department: Mapped[str] = mapped_column(String(128), nullable=False)
    designation: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "Assistant Professor"

    user: Mapped["User"] = relationship("User", back_populates="faculty_profile", lazy="selectin")
    batches: Mapped[list["Batch"]] = relationship(
        "Batch",
        back_populates="guide",
        lazy="selectin",
        order_by="Batch.name",
    )

    @property
    def name(self) -> str:
        return self.user.name

    @validates("user")
    def _validate_user(self, _key, user):
        if user is not None and user.role != UserRole.FACULTY.value:
            raise ValueError("A faculty profile can only belong to a faculty account.")
        return user
