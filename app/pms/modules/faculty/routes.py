from __future__ import annotations

from flask import Blueprint, abort, flash, g, redirect, render_template, request, url_for

from app.pms.audit import record_event
from app.pms.db import db_session
from app.pms.models import User, UserRole
from app.pms.modules.faculty.service import guided_batch, require_profile
from app.pms.modules.notifications.service import notifications_for, notify_batch, validate_message
from app.pms.rbac import require_role

bp = Blueprint("faculty", __name__)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


@bp.get("/dashboard")
@require_role(UserRole.FACULTY)
def dashboard():
    s = db_session()
    u = _current_user()
    faculty = require_profile(u)
    return render_template(
        "faculty/dashboard.html",
        faculty=faculty,
        batches=faculty.batches,
        notifications=notifications_for(s, u, limit=10),
    )


@bp.get("/batches/<int:batch_id>")
@require_role(UserRole.FACULTY)
def batch_detail(batch_id: int):
    s = db_session()
    faculty = require_profile(_current_user())
    batch = guided_batch(s, faculty, batch_id)
    if not batch:
        abort(404)
    return render_template("faculty/batch.html", faculty=faculty, batch=batch)


@bp.post("/batches/<int:batch_id>/notify")
@require_role(UserRole.FACULTY)
def batch_notify(batch_id: int):
    s = db_session()
    u = _current_user()
    batch = guided_batch(s, require_profile(u), batch_id)
    if not batch:
        abort(404)

    message, error = validate_message(request.form.get("message"))
    if error:
        flash(error, "error_msg")
        return redirect(url_for("faculty.batch_detail", batch_id=batch.id))
    if not batch.students:
        flash("This batch has no students yet.", "error_msg")
        return redirect(url_for("faculty.batch_detail", batch_id=batch.id))

    sent = notify_batch(s, batch, message, sender=u)
    record_event(
        s,
        actor=u,
        action="notification.batch",
        entity_type="Batch",
        entity_id=str(batch.id),
        metadata={"recipients": len(sent)},
    )
    s.commit()
    flash(f"Notification sent to {len(sent)} student(s).", "success_msg")
    return redirect(url_for("faculty.batch_detail", batch_id=batch.id))
