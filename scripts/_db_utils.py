from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from app.pms.config import load_settings
from app.pms.db import engine_options, make_sessionmaker


def script_database_url(db_url: str | None = None) -> str:
    """Explicit URL first, then DATABASE_URL (via settings, same default as the app)."""
    return (db_url or load_settings().database_url).strip()


@contextmanager
def script_session(db_url: str | None = None):
    """
    Session for one-off scripts outside a Flask app, built with the same
    engine options the app uses. Commits on success.
    """
    url = script_database_url(db_url)
    engine = create_engine(url, **engine_options(url))
    s: Session = make_sessionmaker(engine)()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()
