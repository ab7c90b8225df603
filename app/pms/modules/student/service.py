from __future__ import annotations

import re
from typing import TYPE_CHECKING

from werkzeug.security import generate_password_hash

from app.pms.audit import record_event
from app.pms.models import User, UserRole
from app.pms.modules.batches.service import batch_members
from app.pms.modules.notifications.service import notifications_for, unread_count
from app.pms.modules.student.models import Student
from app.pms.utils import clean, normalize_email, validate_account_fields

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

# Hall-ticket format: 2-digit year, college code, branch code, roll, e.g. 21A91A0501.
_JNTU_RE = re.compile(r"^\d{2}[A-Z0-9]{8}$")


def normalize_jntu_number(raw: str | None) -> str:
    return clean(raw).upper()


def validate_student_registration(payload: dict) -> list[str]:
    errors = validate_account_fields(payload)
    if not _JNTU_RE.match(normalize_jntu_number(payload.get("jntu_number"))):
        errors.append("JNTU number must be 10 characters, e.g. 21A91A0501.")
    return errors


def register_student(s: "Session", payload: dict) -> User:
    email = normalize_email(payload.get("email"))
    number = normalize_jntu_number(payload.get("jntu_number"))
    if s.query(User).filter(User.email == email).one_or_none():
        raise ValueError("An account with this email already exists.")
    if s.query(Student).filter(Student.jntu_number == number).one_or_none():
        raise ValueError("An account with this JNTU number already exists.")

    user = User(
        email=email,
        name=clean(payload.get("name")),
        password_hash=generate_password_hash(payload["password"]),
        role=UserRole.STUDENT.value,
        is_active=True,
    )
    user.student_profile = Student(jntu_number=number, branch=clean(payload.get("branch")) or None)
    s.add(user)
    s.flush()
    record_event(s, actor=user, action="student.register", entity_type="User", entity_id=str(user.id))
    return user


def dashboard_context(s: "Session", user: User) -> dict:
    student = user.student_profile
    if student is None:
        raise RuntimeError(f"User {user.id} has role student but no student profile")
    batch = student.batch
    return {
        "student": student,
        "batch": batch,
        "guide": batch.guide if batch else None,
        "teammates": batch_members(batch, exclude=student) if batch else [],
        "notifications": notifications_for(s, user),
        "unread_count": unread_count(s, user),
    }
