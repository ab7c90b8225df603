import logging
import os
from datetime import timedelta

from flask import Flask, g, get_flashed_messages, render_template, request, session
from dotenv import load_dotenv

from app.pms.config import load_config
from app.pms.db import init_db, teardown_db_session, verify_connection
from app.pms.models import register_models
from app.pms.routes import bp as routes_bp
from app.pms.auth import bp as auth_bp, load_current_user
from app.pms.modules.student.routes import bp as student_bp
from app.pms.modules.faculty.routes import bp as faculty_bp
from app.pms.modules.supervisor.routes import bp as supervisor_bp

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True

    # Production guardrails (fail fast with clear logs)
    env = app.config["ENV"]
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL"):
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SESSION_SECRET must be set to a strong value in production (not default).")

    # Single process-wide connection; unreachable store is fatal.
    init_db(app)
    verify_connection(app)

    registered = register_models()
    app.logger.info("Registered models: %s", ", ".join(registered))
    app.extensions["registered_models"] = registered

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    # Templates share layouts/main.html; uploads are served by routes.uploads.
    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    from app.pms.security import ensure_csrf_token, validate_csrf

    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.context_processor
    def _inject_locals() -> dict:
        # Flash messages are consumed here, on the next render.
        return {
            "success_msg": get_flashed_messages(category_filter=["success_msg"]),
            "error_msg": get_flashed_messages(category_filter=["error_msg"]),
            "error": get_flashed_messages(category_filter=["error"]),
            "user": getattr(g, "current_user", None),
        }

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str = "%Y-%m-%d %H:%M") -> str:
        if value is None:
            return "-"
        if hasattr(value, "strftime"):
            return value.strftime(format)
        return str(value)

    @app.before_request
    def _csrf_guard():
        # Unmatched paths fall through to the 404 handler.
        if request.url_rule is None:
            return None
        if request.path.startswith(("/static/", "/uploads/", "/health", "/healthz")):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # The login form can be posted from a bookmarked page before a session exists.
            if request.endpoint == "auth.login_post":
                return None
            if not validate_csrf(request):
                return render_template("error.html", message="CSRF token missing or invalid.", error_detail=None), 400

    app.before_request(load_current_user)
    app.teardown_appcontext(teardown_db_session)

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(student_bp, url_prefix="/student")
    app.register_blueprint(faculty_bp, url_prefix="/faculty")
    app.register_blueprint(supervisor_bp, url_prefix="/supervisor")
    app.register_blueprint(routes_bp)

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        original = getattr(e, "original_exception", None) or e
        app.logger.error(
            "Unhandled 500 (request_id=%s)",
            getattr(g, "request_id", None),
            exc_info=(type(original), original, original.__traceback__),
        )
        detail = original if app.config.get("ENV") == "development" else None
        return render_template("error.html", message="Something went wrong!", error_detail=detail), 500

    @app.errorhandler(403)
    def _err_403(e):  # type: ignore[no-redef]
        return render_template("403.html", required_roles=getattr(g, "required_roles", None)), 403

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("404.html"), 404

    logger.info("create_app() complete; app ready to serve")

    return app
