from __future__ import annotations

from flask import Blueprint, abort, flash, g, redirect, render_template, url_for

from app.pms.db import db_session
from app.pms.models import User, UserRole
from app.pms.modules.notifications.service import mark_read
from app.pms.modules.student.service import dashboard_context
from app.pms.rbac import require_role

bp = Blueprint("student", __name__)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


@bp.get("/dashboard")
@require_role(UserRole.STUDENT)
def dashboard():
    s = db_session()
    u = _current_user()
    return render_template("student/dashboard.html", **dashboard_context(s, u))


@bp.post("/notifications/<int:notification_id>/read")
@require_role(UserRole.STUDENT)
def notification_read(notification_id: int):
    s = db_session()
    u = _current_user()
    if mark_read(s, u, notification_id) is None:
        abort(404)
    s.commit()
    flash("Notification marked as read.", "success_msg")
    return redirect(url_for("student.dashboard"))
