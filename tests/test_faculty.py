"""Tests for the faculty module."""
import pytest
from werkzeug.security import generate_password_hash

from app.pms import auth, create_app
from app.pms.db import session_scope
from app.pms.models import AuditEvent, Base, User
from app.pms.modules.batches.models import Batch
from app.pms.modules.faculty.models import Faculty
from app.pms.modules.notifications.models import Notification
from app.pms.modules.student.models import Student

CSRF = "test-csrf-token"


def _faculty(email, name, employee_id):
    u = User(email=email, name=name, password_hash=generate_password_hash("pw"), role="faculty")
    u.faculty_profile = Faculty(employee_id=employee_id, department="CSE", designation="Assistant Professor")
    return u


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
        kumar = _faculty("kumar@example.edu", "Dr. Kumar", "FAC-001")
        rao = _faculty("rao@example.edu", "Dr. Rao", "FAC-002")
        students = []
        for i, name in enumerate(("Asha", "Vikram", "Meena"), start=1):
            u = User(email=f"s{i}@example.edu", name=name, password_hash=generate_password_hash("pw"), role="student")
            u.student_profile = Student(jntu_number=f"21A91A050{i}")
            students.append(u)
        mine = Batch(name="CSE-A1", academic_year="2025-26", project_title="Smart Irrigation")
        mine.guide = kumar.faculty_profile
        mine.students.extend([students[0].student_profile, students[1].student_profile])
        theirs = Batch(name="CSE-B1", academic_year="2025-26", project_title="Library Kiosk")
        theirs.guide = rao.faculty_profile
        theirs.students.append(students[2].student_profile)
        empty = Batch(name="CSE-C1", academic_year="2025-26")
        empty.guide = kumar.faculty_profile
        s.add_all([kumar, rao, *students, mine, theirs, empty])
    return app


@pytest.fixture()
def client(app):
    client = app.test_client()
    client.post("/auth/login", data={"identifier": "kumar@example.edu", "password": "pw"})
    with client.session_transaction() as sess:
        sess["csrf_token"] = CSRF
    return client


def _batch_id(app, name):
    with session_scope(app) as s:
        return s.query(Batch).filter(Batch.name == name).one().id


def test_dashboard_lists_guided_batches_only(client):
    r = client.get("/faculty/dashboard")
    assert r.status_code == 200
    assert b"CSE-A1" in r.data
    assert b"CSE-C1" in r.data
    assert b"CSE-B1" not in r.data
    assert b"Assistant Professor" in r.data


def test_batch_detail(app, client):
    r = client.get(f"/faculty/batches/{_batch_id(app, 'CSE-A1')}")
    assert r.status_code == 200
    assert b"21A91A0501" in r.data
    assert b"Vikram" in r.data


def test_other_faculty_batch_is_404(app, client):
    r = client.get(f"/faculty/batches/{_batch_id(app, 'CSE-B1')}")
    assert r.status_code == 404


def test_notify_batch(app, client):
    bid = _batch_id(app, "CSE-A1")
    r = client.post(f"/faculty/batches/{bid}/notify", data={"csrf_token": CSRF, "message": "Review on Monday"}, follow_redirects=True)
    assert r.status_code == 200
    assert b"Notification sent to 2 student(s)." in r.data

    with session_scope(app) as s:
        notes = s.query(Notification).all()
        recipients = sorted(n.recipient.email for n in notes)
        assert recipients == ["s1@example.edu", "s2@example.edu"]
        assert all(n.sender.email == "kumar@example.edu" for n in notes)
        assert s.query(AuditEvent).filter(AuditEvent.action == "notification.batch").count() == 1


def test_notify_requires_message(app, client):
    bid = _batch_id(app, "CSE-A1")
    r = client.post(f"/faculty/batches/{bid}/notify", data={"csrf_token": CSRF, "message": "   "}, follow_redirects=True)
    assert b"Message is required." in r.data
    with session_scope(app) as s:
        assert s.query(Notification).count() == 0


def test_notify_empty_batch(app, client):
    bid = _batch_id(app, "CSE-C1")
    r = client.post(f"/faculty/batches/{bid}/notify", data={"csrf_token": CSRF, "message": "Hello"}, follow_redirects=True)
    assert b"This batch has no students yet." in r.data


def test_cannot_notify_other_faculty_batch(app, client):
    bid = _batch_id(app, "CSE-B1")
    r = client.post(f"/faculty/batches/{bid}/notify", data={"csrf_token": CSRF, "message": "Hello"})
    assert r.status_code == 404


def test_faculty_profile_only_on_faculty_accounts():
    u = User(email="mixed@example.edu", name="Mixed", password_hash="x", role="student")
    with pytest.raises(ValueError, match="faculty account"):
        u.faculty_profile = Faculty(employee_id="FAC-077", department="CSE")
