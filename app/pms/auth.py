from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, flash, g, redirect, render_template, request, session, url_for
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash

from app.pms.audit import record_event
from app.pms.db import db_session
from app.pms.models import User
from app.pms.modules.faculty.service import register_faculty, validate_faculty_registration
from app.pms.modules.student.models import Student
from app.pms.modules.student.service import normalize_jntu_number, register_student, validate_student_registration
from app.pms.utils import normalize_email

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    recent = [t for t in _login_attempts.get(ip, ()) if t > cutoff]
    if not recent:
        _login_attempts.pop(ip, None)
        return False
    _login_attempts[ip] = recent
    return len(recent) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def load_current_user() -> None:
    """
    Loads g.current_user from the signed session cookie.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    if request.path.startswith(("/static/", "/uploads/", "/health", "/healthz")):
        g.current_user = None
        return

    user_id = session.get("user_id")
    if not user_id:
        g.current_user = None
        return

    try:
        s = db_session()
        user = s.get(User, int(user_id))
    except (SQLAlchemyError, ValueError) as e:
        current_app.logger.error("load_current_user failed (clearing session): %s", e)
        session.pop("user_id", None)
        g.current_user = None
        return
    if not user or not user.is_active:
        session.pop("user_id", None)
        g.current_user = None
        return
    g.current_user = user


def _find_user(identifier: str) -> User | None:
    """Email, or a student's JNTU number."""
    s = db_session()
    if "@" in identifier:
        return s.query(User).filter(User.email == normalize_email(identifier)).one_or_none()
    student = s.query(Student).filter(Student.jntu_number == normalize_jntu_number(identifier)).one_or_none()
    return student.user if student else None


@bp.get("/login")
def login_get():
    nxt = (request.args.get("next") or "").strip()
    return render_template("auth/login.html", title="Log in", next=nxt)


@bp.post("/login")
def login_post():
    identifier = (request.form.get("identifier") or request.form.get("email") or "").strip()
    password = request.form.get("password") or ""
    nxt = (request.form.get("next") or "").strip()
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        flash("Too many login attempts. Please wait 5 minutes.", "error_msg")
        return redirect(url_for("auth.login_get"))

    _record_attempt(ip)

    try:
        s = db_session()
        user = _find_user(identifier)
        if not user or not user.is_active or not check_password_hash(user.password_hash, password):
            record_event(
                s,
                actor=None,
                action="auth.login_failed",
                entity_type="User",
                entity_id=identifier,
                reason="Invalid credentials",
            )
            s.commit()
            current_app.logger.warning("Login failed (identifier=%s request_id=%s)", identifier, g.request_id)
            flash("Invalid credentials.", "error_msg")
            return redirect(url_for("auth.login_get", next=nxt or None))

        session["user_id"] = user.id
        _login_attempts.pop(ip, None)
        record_event(s, actor=user, action="auth.login", entity_type="User", entity_id=str(user.id))
        s.commit()
        # Optional "next" redirect (only allow local paths to avoid open redirects).
        if nxt.startswith("/") and not nxt.startswith("//"):
            return redirect(nxt)
        return redirect(url_for("routes.dashboard"))
    except Exception:
        current_app.logger.exception("Login POST crashed (identifier=%s request_id=%s)", identifier, getattr(g, "request_id", None))
        raise


@bp.get("/logout")
def logout():
    s = db_session()
    user = getattr(g, "current_user", None)
    if user:
        record_event(s, actor=user, action="auth.logout", entity_type="User", entity_id=str(user.id))
        s.commit()
    session.pop("user_id", None)
    flash("You are logged out.", "success_msg")
    return redirect(url_for("routes.index"))


def _registration_form(*fields: str) -> dict:
    payload = {f: request.form.get(f) for f in fields}
    payload["password"] = request.form.get("password") or ""
    payload["confirm_password"] = request.form.get("confirm_password") or ""
    return payload


@bp.post("/register/student")
def register_student_post():
    payload = _registration_form("name", "email", "jntu_number", "branch")
    errors = validate_student_registration(payload)
    if errors:
        for e in errors:
            flash(e, "error_msg")
        return redirect(url_for("routes.index"))

    s = db_session()
    try:
        register_student(s, payload)
    except ValueError as e:
        s.rollback()
        flash(str(e), "error_msg")
        return redirect(url_for("routes.index"))
    s.commit()
    flash("Registration successful. Please log in.", "success_msg")
    return redirect(url_for("auth.login_get"))


@bp.post("/register/faculty")
def register_faculty_post():
    payload = _registration_form("name", "email", "employee_id", "department", "designation")
    errors = validate_faculty_registration(payload)
    if errors:
        for e in errors:
            flash(e, "error_msg")
        return redirect(url_for("routes.index"))

    s = db_session()
    try:
        register_faculty(s, payload)
    except ValueError as e:
        s.rollback()
        flash(str(e), "error_msg")
        return redirect(url_for("routes.index"))
    s.commit()
    flash("Registration successful. Please log in.", "success_msg")
    return redirect(url_for("auth.login_get"))
