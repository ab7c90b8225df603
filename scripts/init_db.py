import os
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.pms.models import User, UserRole  # noqa: E402
from scripts._db_utils import script_session  # noqa: E402


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed the supervisor account in an idempotent way.
    Does NOT overwrite an existing supervisor's password.
    """
    email = (os.environ.get("SUPERVISOR_EMAIL") or "supervisor@example.edu").strip().lower()
    password = os.environ.get("SUPERVISOR_PASSWORD") or "change-me"
    name = (os.environ.get("SUPERVISOR_NAME") or "Project Supervisor").strip()

    with script_session(database_url) as s:
        user = s.query(User).filter(User.email == email).one_or_none()
        if not user:
            user = User(
                email=email,
                name=name,
                password_hash=generate_password_hash(password),
                role=UserRole.SUPERVISOR.value,
                is_active=True,
            )
            s.add(user)
        elif user.role != UserRole.SUPERVISOR.value:
            raise RuntimeError(f"{email} already exists with role {user.role}; refusing to promote it.")

    print("Initialized database (seed_only).")
    print(f"Supervisor email: {email}")
    print("Supervisor password: (from SUPERVISOR_PASSWORD)")


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
