from __future__ import annotations

from typing import TYPE_CHECKING

from app.pms.models import UserRole
from app.pms.modules.batches.models import Batch
from app.pms.modules.batches.service import MAX_BATCH_SIZE
from app.pms.modules.faculty.models import Faculty
from app.pms.modules.student.models import Student

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

# Roles a supervisor may broadcast to.
BROADCAST_ROLES = (UserRole.STUDENT, UserRole.FACULTY, UserRole.SUPERVISOR)


def overview(s: "Session") -> dict:
    batches = s.query(Batch).order_by(Batch.academic_year.desc(), Batch.name.asc()).all()
    faculty = s.query(Faculty).order_by(Faculty.department.asc(), Faculty.employee_id.asc()).all()
    unassigned = (
        s.query(Student)
        .filter(Student.batch_id.is_(None))
        .order_by(Student.jntu_number.asc())
        .all()
    )
    return {
        "batches": batches,
        "faculty": faculty,
        "unassigned_students": unassigned,
        "unguided_count": sum(1 for b in batches if b.guide_faculty_id is None),
        "max_batch_size": MAX_BATCH_SIZE,
        "broadcast_roles": [r.value for r in BROADCAST_ROLES],
    }


def parse_broadcast_role(raw: str | None) -> UserRole | None:
    role = UserRole.parse(raw)
    return role if role in BROADCAST_ROLES else None
