import time

from flask import Blueprint, Response, current_app
from prometheus_client import CONTENT_TYPE_LATEST
from sqlalchemy import text

from app.htmxspa.constants import VERSION
from app.htmxspa.db import db_session
from app.htmxspa.errors import NotFound

bp = Blueprint("routes", __name__)


def _uptime() -> float:
    return time.monotonic() - current_app.extensions.get("started_at", time.monotonic())


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON, including a database round-trip."""
    database = "ok"
    try:
        db_session().execute(text("SELECT 1"))
    except Exception as e:
        current_app.logger.error("Health check database error: %s", e)
        database = "error"
    body = {
        "ok": database == "ok",
        "version": VERSION,
        "uptime": int(_uptime()),
        "database": database,
    }
    return body, (200 if body["ok"] else 503)


@bp.get("/healthz")
def healthz():
    """
    Fast liveness check. No DB access, minimal overhead.
    """
    return "ok", 200


@bp.get("/metrics")
def metrics():
    """Prometheus text exposition of request and store metrics."""
    m = current_app.extensions.get("metrics")
    if m is None:
        raise NotFound("Metrics are disabled.")
    m.refresh(db_session(), _uptime())
    return Response(m.exposition(), content_type=CONTENT_TYPE_LATEST)
