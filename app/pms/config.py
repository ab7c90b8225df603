import os
from dataclasses import dataclass
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    port: int
    upload_folder: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SESSION_SECRET", "change-me"),
        env=_getenv("ENV", "development").lower(),
        database_url=_getenv("DATABASE_URL", "sqlite:///project_management.db"),
        port=int(_getenv("PORT", "3000")),
        upload_folder=_getenv("UPLOAD_FOLDER", str(ROOT / "uploads")),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "PORT": s.port,
        "UPLOAD_FOLDER": s.upload_folder,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,
        "MAX_CONTENT_LENGTH": 16 * 1024 * 1024,
    }
