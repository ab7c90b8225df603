from __future__ import annotations

from flask import Blueprint, abort, flash, g, redirect, render_template, request, url_for

from app.pms.audit import record_event
from app.pms.db import db_session
from app.pms.models import User, UserRole
from app.pms.modules.batches.models import Batch
from app.pms.modules.batches.service import add_student, assign_guide, create_batch, validate_batch_payload
from app.pms.modules.faculty.models import Faculty
from app.pms.modules.notifications.service import mark_read, notifications_for, notify_role, unread_count, validate_message
from app.pms.modules.supervisor.service import overview, parse_broadcast_role
from app.pms.rbac import require_role

bp = Blueprint("supervisor", __name__)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def _get_batch_or_404(batch_id: int) -> Batch:
    batch = db_session().get(Batch, batch_id)
    if not batch:
        abort(404)
    return batch


@bp.get("/dashboard")
@require_role(UserRole.SUPERVISOR)
def dashboard():
    s = db_session()
    u = _current_user()
    return render_template(
        "supervisor/dashboard.html",
        notifications=notifications_for(s, u, limit=20),
        unread_count=unread_count(s, u),
        **overview(s),
    )


# ---------- Batches ----------
@bp.post("/batches")
@require_role(UserRole.SUPERVISOR)
def batches_new_post():
    s = db_session()
    u = _current_user()

    payload = {
        "name": request.form.get("name"),
        "academic_year": request.form.get("academic_year"),
        "project_title": request.form.get("project_title"),
    }
    errors = validate_batch_payload(payload)
    if errors:
        for e in errors:
            flash(e, "error_msg")
        return redirect(url_for("supervisor.dashboard"))

    try:
        batch = create_batch(s, payload, u)
    except ValueError as e:
        flash(str(e), "error_msg")
        return redirect(url_for("supervisor.dashboard"))
    s.commit()

    flash(f"Batch {batch.name} created.", "success_msg")
    return redirect(url_for("supervisor.dashboard"))


@bp.post("/batches/<int:batch_id>/guide")
@require_role(UserRole.SUPERVISOR)
def batch_guide_post(batch_id: int):
    s = db_session()
    u = _current_user()
    batch = _get_batch_or_404(batch_id)

    try:
        faculty_id = int(request.form.get("faculty_id") or "")
    except ValueError:
        faculty_id = None
    faculty = s.get(Faculty, faculty_id) if faculty_id else None
    if not faculty:
        flash("Select a faculty member to guide this batch.", "error_msg")
        return redirect(url_for("supervisor.dashboard"))

    assign_guide(s, batch, faculty, u)
    s.commit()
    flash(f"{faculty.name} now guides {batch.name}.", "success_msg")
    return redirect(url_for("supervisor.dashboard"))


@bp.post("/batches/<int:batch_id>/students")
@require_role(UserRole.SUPERVISOR)
def batch_students_post(batch_id: int):
    s = db_session()
    u = _current_user()
    batch = _get_batch_or_404(batch_id)

    try:
        student = add_student(s, batch, request.form.get("jntu_number") or "", u)
    except ValueError as e:
        flash(str(e), "error_msg")
        return redirect(url_for("supervisor.dashboard"))
    s.commit()
    flash(f"{student.jntu_number} added to {batch.name}.", "success_msg")
    return redirect(url_for("supervisor.dashboard"))


# ---------- Notifications ----------
@bp.post("/notifications")
@require_role(UserRole.SUPERVISOR)
def notifications_post():
    s = db_session()
    u = _current_user()

    role = parse_broadcast_role(request.form.get("role"))
    message, error = validate_message(request.form.get("message"))
    if role is None:
        error = error or "Choose who should receive the notification."
    if error:
        flash(error, "error_msg")
        return redirect(url_for("supervisor.dashboard"))

    sent = notify_role(s, role, message, sender=u)
    record_event(
        s,
        actor=u,
        action="notification.broadcast",
        entity_type="UserRole",
        entity_id=role.value,
        metadata={"recipients": len(sent)},
    )
    s.commit()
    flash(f"Notification sent to {len(sent)} {role.value} account(s).", "success_msg")
    return redirect(url_for("supervisor.dashboard"))


@bp.post("/notifications/<int:notification_id>/read")
@require_role(UserRole.SUPERVISOR)
def notification_read(notification_id: int):
    s = db_session()
    u = _current_user()
    if mark_read(s, u, notification_id) is None:
        abort(404)
    s.commit()
    flash("Notification marked as read.", "success_msg")
    return redirect(url_for("supervisor.dashboard"))
