from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

if TYPE_CHECKING:
    from app.pms.modules.faculty.models import Faculty
    from app.pms.modules.student.models import Student


class Base(DeclarativeBase):
    pass


class UserRole(str, enum.Enum):
    """Explicit account type. Dispatch and access checks read this, nothing else."""

    STUDENT = "student"
    FACULTY = "faculty"
    SUPERVISOR = "supervisor"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> "UserRole":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.OTHER


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=UserRole.OTHER.value)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    student_profile: Mapped[Optional["Student"]] = relationship(
        "Student",
        back_populates="user",
        uselist=False,
        lazy="selectin",
    )
    faculty_profile: Mapped[Optional["Faculty"]] = relationship(
        "Faculty",
        back_populates="user",
        uselist=False,
        lazy="selectin",
    )

    @property
    def user_role(self) -> UserRole:
        return UserRole.parse(self.role)


class AuditEvent(Base):
    """
    Append-only audit trail event.
    """

    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    actor_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    actor_user_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "auth.login"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "Batch"
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)


def register_models() -> list[str]:
    """
    Import the entity models in dependency order and return their names.
    Faculty and Student reference users; Batch references both; Notification
    references users last.
    """
    from app.pms.modules.faculty.models import Faculty
    from app.pms.modules.student.models import Student
    from app.pms.modules.batches.models import Batch
    from app.pms.modules.notifications.models import Notification

    return [m.__name__ for m in (User, Faculty, Student, Batch, Notification)]


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.pms.modules.faculty.models import Faculty  # noqa: E402,F401,F811
from app.pms.modules.student.models import Student  # noqa: E402,F401,F811
from app.pms.modules.batches.models import Batch  # noqa: E402,F401
from app.pms.modules.notifications.models import Notification  # noqa: E402,F401
