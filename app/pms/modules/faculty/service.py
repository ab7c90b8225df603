from __future__ import annotations

import re
from typing import TYPE_CHECKING

from werkzeug.security import generate_password_hash

from app.pms.audit import record_event
from app.pms.models import User, UserRole
from app.pms.modules.batches.models import Batch
from app.pms.modules.faculty.models import Faculty
from app.pms.utils import clean, normalize_email, validate_account_fields

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

_EMPLOYEE_ID_RE = re.compile(r"^[A-Z0-9-]{3,32}$")


def validate_faculty_registration(payload: dict) -> list[str]:
    errors = validate_account_fields(payload)
    if not _EMPLOYEE_ID_RE.match(clean(payload.get("employee_id")).upper()):
        errors.append("Employee ID must be 3-32 letters, digits or dashes.")
    if not clean(payload.get("department")):
        errors.append("Department is required.")
    return errors


def register_faculty(s: "Session", payload: dict) -> User:
    email = normalize_email(payload.get("email"))
    employee_id = clean(payload.get("employee_id")).upper()
    if s.query(User).filter(User.email == email).one_or_none():
        raise ValueError("An account with this email already exists.")
    if s.query(Faculty).filter(Faculty.employee_id == employee_id).one_or_none():
        raise ValueError("An account with this employee ID already exists.")

    user = User(
        email=email,
        name=clean(payload.get("name")),
        password_hash=generate_password_hash(payload["password"]),
        role=UserRole.FACULTY.value,
        is_active=True,
    )
    user.faculty_profile = Faculty(
        employee_id=employee_id,
        department=clean(payload.get("department")),
        designation=clean(payload.get("designation")) or None,
    )
    s.add(user)
    s.flush()
    record_event(s, actor=user, action="faculty.register", entity_type="User", entity_id=str(user.id))
    return user


def require_profile(user: User) -> Faculty:
    faculty = user.faculty_profile
    if faculty is None:
        raise RuntimeError(f"User {user.id} has role faculty but no faculty profile")
    return faculty


def guided_batch(s: "Session", faculty: Faculty, batch_id: int) -> Batch | None:
    """The batch, only if this faculty member guides it."""
    batch = s.get(Batch, batch_id)
    if not batch or batch.guide_faculty_id != faculty.id:
        return None
    return batch
