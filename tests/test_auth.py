"""Tests for login, logout and self-registration."""
from datetime import datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from app.pms import auth, create_app
from app.pms.db import session_scope
from app.pms.models import AuditEvent, Base, User
from app.pms.modules.faculty.models import Faculty
from app.pms.modules.student.models import Student

CSRF = "test-csrf-token"


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SESSION_SECRET", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("UPLOAD_FOLDER", str(tmp_path / "uploads"))

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    auth._login_attempts.clear()

    with session_scope(app) as s:
        u = User(email="supervisor@example.edu", name="Prof. Iyer", password_hash=generate_password_hash("pw-super"), role="supervisor")
        inactive = User(email="gone@example.edu", name="Former Staff", password_hash=generate_password_hash("pw-gone"), role="faculty", is_active=False)
        s.add_all([u, inactive])
    return app


@pytest.fixture()
def client(app):
    client = app.test_client()
    with client.session_transaction() as sess:
        sess["csrf_token"] = CSRF
    return client


STUDENT_FORM = {
    "csrf_token": CSRF,
    "name": "Ravi Teja",
    "email": "Ravi.Teja@Example.edu",
    "jntu_number": "21a91a0512",
    "branch": "ECE",
    "password": "long-enough",
    "confirm_password": "long-enough",
}

FACULTY_FORM = {
    "csrf_token": CSRF,
    "name": "Dr. Lakshmi",
    "email": "lakshmi@example.edu",
    "employee_id": "fac-042",
    "department": "CSE",
    "designation": "Associate Professor",
    "password": "long-enough",
    "confirm_password": "long-enough",
}


def test_login_page_renders(client):
    r = client.get("/auth/login")
    assert r.status_code == 200
    assert b"Email or JNTU number" in r.data


def test_register_student_then_login_with_jntu_number(app, client):
    r = client.post("/auth/register/student", data=STUDENT_FORM)
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/auth/login")

    with session_scope(app) as s:
        user = s.query(User).filter(User.email == "ravi.teja@example.edu").one()
        assert user.role == "student"
        assert user.student_profile.jntu_number == "21A91A0512"
        assert user.student_profile.branch == "ECE"

    r = client.post("/auth/login", data={"identifier": "21A91A0512", "password": "long-enough"})
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/dashboard")

    r = client.get("/dashboard")
    assert r.headers["Location"].endswith("/student/dashboard")


def test_register_student_rejects_duplicates(client):
    client.post("/auth/register/student", data=STUDENT_FORM)
    r = client.post("/auth/register/student", data={**STUDENT_FORM, "email": "other@example.edu"}, follow_redirects=True)
    assert r.status_code == 200
    assert b"An account with this JNTU number already exists." in r.data

    r = client.post("/auth/register/student", data={**STUDENT_FORM, "jntu_number": "21A91A0599"}, follow_redirects=True)
    assert b"An account with this email already exists." in r.data


@pytest.mark.parametrize(
    "override,message",
    [
        ({"jntu_number": "12345"}, b"JNTU number must be 10 characters"),
        ({"confirm_password": "different"}, b"Passwords do not match."),
        ({"password": "short", "confirm_password": "short"}, b"Password must be at least 8 characters."),
        ({"email": "not-an-email"}, b"A valid email address is required."),
        ({"name": "  "}, b"Name is required."),
    ],
)
def test_register_student_validation(app, client, override, message):
    r = client.post("/auth/register/student", data={**STUDENT_FORM, **override}, follow_redirects=True)
    assert r.status_code == 200
    assert message in r.data
    with session_scope(app) as s:
        assert s.query(Student).count() == 0


def test_register_faculty(app, client):
    r = client.post("/auth/register/faculty", data=FACULTY_FORM)
    assert r.status_code == 302

    with session_scope(app) as s:
        faculty = s.query(Faculty).one()
        assert faculty.employee_id == "FAC-042"
        assert faculty.user.role == "faculty"
        assert faculty.designation == "Associate Professor"

    client.post("/auth/login", data={"identifier": "lakshmi@example.edu", "password": "long-enough"})
    r = client.get("/")
    assert r.headers["Location"].endswith("/faculty/dashboard")


def test_register_faculty_requires_department(client):
    r = client.post("/auth/register/faculty", data={**FACULTY_FORM, "department": ""}, follow_redirects=True)
    assert b"Department is required." in r.data


def test_invalid_credentials(app, client):
    r = client.post("/auth/login", data={"identifier": "supervisor@example.edu", "password": "nope"}, follow_redirects=True)
    assert r.status_code == 200
    assert b"Invalid credentials." in r.data

    with session_scope(app) as s:
        ev = s.query(AuditEvent).filter(AuditEvent.action == "auth.login_failed").one()
        assert ev.entity_id == "supervisor@example.edu"


def test_inactive_user_cannot_login(client):
    r = client.post("/auth/login", data={"identifier": "gone@example.edu", "password": "pw-gone"}, follow_redirects=True)
    assert b"Invalid credentials." in r.data


def test_login_rate_limited(client):
    for _ in range(5):
        client.post("/auth/login", data={"identifier": "supervisor@example.edu", "password": "nope"})
    r = client.post("/auth/login", data={"identifier": "supervisor@example.edu", "password": "pw-super"}, follow_redirects=True)
    assert b"Too many login attempts. Please wait 5 minutes." in r.data
    with client.session_transaction() as sess:
        assert "user_id" not in sess


def test_login_honours_local_next_only(client):
    r = client.post(
        "/auth/login",
        data={"identifier": "supervisor@example.edu", "password": "pw-super", "next": "/supervisor/dashboard"},
    )
    assert r.headers["Location"].endswith("/supervisor/dashboard")

    client.get("/auth/logout")
    r = client.post(
        "/auth/login",
        data={"identifier": "supervisor@example.edu", "password": "pw-super", "next": "//evil.example.com/"},
    )
    assert r.headers["Location"].endswith("/dashboard")
    assert "evil" not in r.headers["Location"]


def test_logout(app, client):
    client.post("/auth/login", data={"identifier": "supervisor@example.edu", "password": "pw-super"})
    r = client.get("/auth/logout", follow_redirects=True)
    assert r.status_code == 200
    assert b"You are logged out." in r.data
    assert b"Welcome to Project Management System" in r.data

    with session_scope(app) as s:
        actions = [e.action for e in s.query(AuditEvent).order_by(AuditEvent.id).all()]
    assert actions == ["auth.login", "auth.logout"]


@pytest.mark.parametrize("url,form", [("/auth/register/student", STUDENT_FORM), ("/auth/register/faculty", FACULTY_FORM)])
def test_registration_requires_csrf_token(app, client, url, form):
    r = client.post(url, data={**form, "csrf_token": "forged"})
    assert r.status_code == 400
    assert b"CSRF token missing or invalid." in r.data

    r = client.post(url, data={k: v for k, v in form.items() if k != "csrf_token"})
    assert r.status_code == 400
    with session_scope(app) as s:
        assert s.query(User).count() == 2


def test_stale_login_attempts_are_forgotten():
    stale = datetime.utcnow() - timedelta(seconds=auth._LOGIN_RATE_WINDOW + 1)
    auth._login_attempts["203.0.113.7"] = [stale] * auth._LOGIN_RATE_LIMIT

    assert auth._check_rate_limit("203.0.113.7") is False
    assert "203.0.113.7" not in auth._login_attempts
    assert auth._check_rate_limit("198.51.100.1") is False
    assert "198.51.100.1" not in auth._login_attempts


def test_successful_login_clears_attempts(client):
    client.post("/auth/login", data={"identifier": "supervisor@example.edu", "password": "nope"})
    assert len(auth._login_attempts["127.0.0.1"]) == 1
    client.post("/auth/login", data={"identifier": "supervisor@example.edu", "password": "pw-super"})
    assert "127.0.0.1" not in auth._login_attempts
