from flask import Blueprint, current_app, flash, g, redirect, render_template, send_from_directory, session, url_for

from app.pms.rbac import dashboard_endpoint_for

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    user = getattr(g, "current_user", None)
    if user:
        endpoint = dashboard_endpoint_for(user)
        return redirect(url_for(endpoint) if endpoint else url_for("routes.dashboard"))

    # Landing page with the registration forms.
    return render_template("index.html", title="Welcome to Project Management System")


@bp.get("/dashboard")
def dashboard():
    user = getattr(g, "current_user", None)
    if not user:
        flash("Please log in to access the dashboard", "error_msg")
        return redirect(url_for("routes.index"))

    endpoint = dashboard_endpoint_for(user)
    if endpoint:
        return redirect(url_for(endpoint))

    # No dashboard for this role; sign out so "/" shows the landing page
    # instead of bouncing back here.
    current_app.logger.warning("No dashboard for user_id=%s role=%s", user.id, user.role)
    session.pop("user_id", None)
    g.current_user = None
    flash("No dashboard is available for your account", "error_msg")
    return redirect(url_for("routes.index"))


@bp.get("/uploads/<path:filename>")
def uploads(filename: str):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for load balancers. No DB access, minimal overhead.
    """
    return "ok", 200
