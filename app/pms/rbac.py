from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import abort, current_app, g, redirect, request, url_for

from app.pms.models import User, UserRole

DASHBOARD_ENDPOINTS: dict[UserRole, str] = {
    UserRole.STUDENT: "student.dashboard",
    UserRole.FACULTY: "faculty.dashboard",
    UserRole.SUPERVISOR: "supervisor.dashboard",
}


def dashboard_endpoint_for(user: User) -> str | None:
    """Endpoint of the user's role dashboard, or None for roles without one."""
    return DASHBOARD_ENDPOINTS.get(user.user_role)


def user_has_role(user: User | None, *roles: UserRole) -> bool:
    if not user or not user.is_active:
        return False
    return user.user_role in roles


def require_role(*roles: UserRole) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            user: User | None = getattr(g, "current_user", None)
            # Unauthenticated → redirect to login.
            if not user or not user.is_active:
                nxt = request.full_path or request.path
                # Avoid trailing '?' from full_path when there is no query string.
                if nxt.endswith("?"):
                    nxt = nxt[:-1]
                return redirect(url_for("auth.login_get", next=nxt))
            # Authenticated but wrong role → 403
            if not user_has_role(user, *roles):
                g.required_roles = [r.value for r in roles]
                current_app.logger.warning(
                    "Forbidden: user_id=%s role=%s required=%s",
                    user.id,
                    user.role,
                    ",".join(g.required_roles),
                )
                abort(403)
            return fn(*args, **kwargs)

        return wrapped

    return decorator
