import pytest
from sqlalchemy import create_engine
from werkzeug.security import check_password_hash

from app.pms.models import Base, User
from scripts import init_db
from scripts._db_utils import script_session


@pytest.fixture()
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path/'seed.db'}"
    engine = create_engine(url, future=True)
    Base.metadata.create_all(bind=engine)
    engine.dispose()
    monkeypatch.setenv("SUPERVISOR_EMAIL", "Head@Example.edu")
    monkeypatch.setenv("SUPERVISOR_PASSWORD", "first-password")
    return url


def test_seed_creates_supervisor_once(db_url, monkeypatch):
    init_db.seed_only(database_url=db_url)
    monkeypatch.setenv("SUPERVISOR_PASSWORD", "second-password")
    init_db.seed_only(database_url=db_url)

    with script_session(db_url) as s:
        users = s.query(User).all()
        assert len(users) == 1
        assert users[0].email == "head@example.edu"
        assert users[0].role == "supervisor"
        assert check_password_hash(users[0].password_hash, "first-password")


def test_seed_refuses_to_promote_existing_account(db_url):
    with script_session(db_url) as s:
        s.add(User(email="head@example.edu", name="Someone", password_hash="x", role="student"))

    with pytest.raises(RuntimeError, match="refusing to promote"):
        init_db.seed_only(database_url=db_url)


def test_seed_defaults_to_database_url_env(db_url, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", db_url)
    init_db.seed_only()

    with script_session() as s:
        assert s.query(User).filter(User.role == "supervisor").count() == 1
