from __future__ import annotations

import re

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


def clean(value: str | None) -> str:
    return (value or "").strip()


def normalize_email(raw: str | None) -> str:
    return clean(raw).lower()


def validate_account_fields(payload: dict) -> list[str]:
    """Checks shared by every self-registration form. Returns list of errors."""
    errors = []
    if not clean(payload.get("name")):
        errors.append("Name is required.")
    if not _EMAIL_RE.match(normalize_email(payload.get("email"))):
        errors.append("A valid email address is required.")
    password = payload.get("password") or ""
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    elif password != (payload.get("confirm_password") or ""):
        errors.append("Passwords do not match.")
    return errors
