import logging
import time
import uuid

from flask import Flask, g, request
from dotenv import load_dotenv
from flask_cors import CORS
from jinja2 import StrictUndefined
from werkzeug.exceptions import HTTPException

from app.htmxspa.config import load_config
from app.htmxspa.constants import (
    CORS_ALLOW_HEADERS,
    CORS_EXPOSE_HEADERS,
    CORS_METHODS,
    MUTATING_METHODS,
    UNGUARDED_PATH_PREFIXES,
    VERSION,
)
from app.htmxspa.db import dispose_engine_on_fork, init_db, teardown_db_session
from app.htmxspa.errors import AppError, StoreError, ValidationError
from app.htmxspa.logging_config import configure_logging
from app.htmxspa.metrics import init_metrics
from app.htmxspa.rendering import precompile_templates, render
from app.htmxspa.routes import bp as routes_bp
from app.htmxspa.pages import bp as pages_bp
from app.htmxspa.static_assets import bp as static_assets_bp
from app.htmxspa.modules.todos.routes import bp as todos_bp
from app.htmxspa.modules.users.routes import bp as users_bp
from app.htmxspa.modules.modal.routes import bp as modal_bp
from app.htmxspa.plugins import FeatureModule, ModuleComposer
from app.htmxspa.store import bootstrap_store
from app.htmxspa.views import ErrorFragment

__version__ = VERSION


def default_modules(config: dict) -> list[FeatureModule]:
    """Feature modules mounted by create_app(), in mount order."""
    modules: list[FeatureModule] = []
    if config.get("ENABLE_LANDING", True):
        from app.htmxspa.plugins.landing import LandingModule

        modules.append(LandingModule())
    return modules


def create_app(modules: list[FeatureModule] | None = None, module_config: dict | None = None) -> Flask:
    load_dotenv()
    config = load_config()
    configure_logging(config["LOG_LEVEL"])

    app = Flask(__name__, template_folder="templates", static_folder=None)
    app.config.from_mapping(config)
    # Any template variable the view-model does not provide is an error, not an empty string.
    app.jinja_options = {**app.jinja_options, "undefined": StrictUndefined}

    from app.htmxspa.security import ensure_csrf_token, validate_csrf

    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str = "%Y-%m-%d") -> str:
        if value is None:
            return "—"
        if hasattr(value, "strftime"):
            return value.strftime(format)
        return str(value)

    if app.config.get("METRICS_ENABLED", True):
        init_metrics(app)

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

    @app.before_request
    def _csrf_guard():
        if not app.config.get("CSRF_ENABLED", True):
            return None
        if request.path.startswith(UNGUARDED_PATH_PREFIXES):
            return None
        ensure_csrf_token()
        if request.method in MUTATING_METHODS and not validate_csrf(request):
            app.logger.warning("CSRF check failed: %s %s", request.method, request.path)
            raise ValidationError("CSRF token missing or invalid.")
        return None

    @app.after_request
    def _echo_request_id(resp):
        rid = getattr(g, "request_id", None)
        if rid:
            resp.headers["X-Request-ID"] = rid
        return resp

    if app.config.get("CORS_ALLOW_ORIGINS"):
        CORS(
            app,
            origins=app.config["CORS_ALLOW_ORIGINS"],
            methods=list(CORS_METHODS),
            allow_headers=list(CORS_ALLOW_HEADERS),
            expose_headers=list(CORS_EXPOSE_HEADERS),
            supports_credentials=True,
        )

    # Production guardrails (fail fast with clear logs)
    if app.config.get("ENV") == "production":
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)
    dispose_engine_on_fork(app)

    # Store must be reachable and migrated before we serve anything.
    try:
        bootstrap_store(app)
    except StoreError:
        app.logger.exception("Record store unavailable; refusing to start")
        raise

    app.register_blueprint(routes_bp)
    app.register_blueprint(static_assets_bp)
    app.register_blueprint(pages_bp)
    app.register_blueprint(todos_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(modal_bp)

    composer = (
        ModuleComposer()
        .with_db(app.extensions["sqlalchemy_engine"])
        .with_config(module_config or {})
    )
    for module in default_modules(config) if modules is None else modules:
        composer.register(module)
    app.register_blueprint(composer.build())
    app.extensions["feature_modules"] = composer.modules

    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(AppError)
    def _err_app(e: AppError):  # type: ignore[no-redef]
        if e.status_code >= 500:
            app.logger.error("%s (request_id=%s)", e.message, getattr(g, "request_id", None))
        return render(ErrorFragment(status_code=e.status_code, title=e.title, message=e.message)), e.status_code

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        code = e.code or 500
        return render(ErrorFragment(status_code=code, title=e.name, message=e.description or e.name)), code

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        # Ensure stack trace shows in logs.
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render(
            ErrorFragment(status_code=500, title="Server error", message="Something went wrong. Please try again.")
        ), 500

    # Templates are compiled and checked against their view-models now, not on first request.
    precompile_templates(app)

    app.extensions["started_at"] = time.monotonic()
    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
