from __future__ import annotations

import re
from typing import TYPE_CHECKING

from app.pms.audit import record_event
from app.pms.modules.batches.models import Batch
from app.pms.modules.student.models import Student

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.pms.models import User
    from app.pms.modules.faculty.models import Faculty

MAX_BATCH_SIZE = 4
_ACADEMIC_YEAR_RE = re.compile(r"^(\d{4})-(\d{2})$")


def validate_batch_payload(payload: dict) -> list[str]:
    """Validate batch creation payload. Returns list of errors."""
    errors = []
    name = (payload.get("name") or "").strip()
    if not name:
        errors.append("Batch name is required.")
    elif len(name) > 64:
        errors.append("Batch name must be at most 64 characters.")

    year = (payload.get("academic_year") or "").strip()
    m = _ACADEMIC_YEAR_RE.match(year)
    if not m:
        errors.append("Academic year must look like 2025-26.")
    elif (int(m.group(1)) + 1) % 100 != int(m.group(2)):
        errors.append("Academic year must span consecutive years.")
    return errors


def create_batch(s: "Session", payload: dict, user: "User") -> Batch:
    name = (payload.get("name") or "").strip()
    if s.query(Batch).filter(Batch.name == name).one_or_none():
        raise ValueError(f"A batch named {name} already exists.")

    batch = Batch(
        name=name,
        academic_year=(payload.get("academic_year") or "").strip(),
        project_title=(payload.get("project_title") or "").strip() or None,
    )
    s.add(batch)
    s.flush()
    record_event(
        s,
        actor=user,
        action="batch.create",
        entity_type="Batch",
        entity_id=str(batch.id),
        metadata={"name": batch.name, "academic_year": batch.academic_year},
    )
    return batch


def assign_guide(s: "Session", batch: Batch, faculty: "Faculty", user: "User") -> Batch:
    previous = batch.guide_faculty_id
    batch.guide = faculty
    record_event(
        s,
        actor=user,
        action="batch.assign_guide",
        entity_type="Batch",
        entity_id=str(batch.id),
        metadata={"from": previous, "to": faculty.id},
    )
    return batch


def add_student(s: "Session", batch: Batch, jntu_number: str, user: "User") -> Student:
    """
    Put a student into a batch. A student belongs to at most one batch and a
    batch holds at most MAX_BATCH_SIZE students.
    """
    number = (jntu_number or "").strip().upper()
    student = s.query(Student).filter(Student.jntu_number == number).one_or_none()
    if not student:
        raise ValueError(f"No student with JNTU number {number}.")
    if student.batch_id is not None:
        if student.batch_id == batch.id:
            raise ValueError(f"{number} is already in this batch.")
        raise ValueError(f"{number} is already assigned to another batch.")
    if len(batch.students) >= MAX_BATCH_SIZE:
        raise ValueError(f"Batch {batch.name} is full ({MAX_BATCH_SIZE} students).")

    batch.students.append(student)
    record_event(
        s,
        actor=user,
        action="batch.add_student",
        entity_type="Batch",
        entity_id=str(batch.id),
        metadata={"jntu_number": number},
    )
    return student


def batch_members(batch: Batch, *, exclude: Student | None = None) -> list[Student]:
    return [st for st in batch.students if exclude is None or st.id != exclude.id]
