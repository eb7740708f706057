"""
Serves the bundled front-end assets under /static/ with long-lived cache headers.
"""

from __future__ import annotations

import hashlib
import mimetypes
from pathlib import Path, PurePosixPath

from flask import Blueprint, Response, abort, current_app, request

STATIC_ROOT = Path(__file__).resolve().parent / "static"

bp = Blueprint("static_assets", __name__)


def is_path_safe(path: str) -> bool:
    if not path or "\\" in path or "\x00" in path:
        return False
    parts = PurePosixPath(path).parts
    return not (PurePosixPath(path).is_absolute() or ".." in parts)


def cache_control_for(path: str) -> str:
    suffix = PurePosixPath(path).suffix.lower()
    if suffix in (".js", ".css", ".svg"):
        return "public, max-age=31536000, immutable"
    if suffix in (".jpg", ".jpeg", ".png", ".gif", ".webp", ".ico"):
        return "public, max-age=604800, immutable"
    if suffix in (".html", ".htm"):
        return "public, max-age=3600, must-revalidate"
    return "public, max-age=86400"


@bp.get("/static/<path:path>")
def static_asset(path: str):
    if not is_path_safe(path):
        current_app.logger.warning("Rejected unsafe static path: %s", path)
        abort(403)
    file_path = STATIC_ROOT / path
    if not file_path.is_file():
        abort(404)

    data = file_path.read_bytes()
    etag = hashlib.sha1(data).hexdigest()
    mime = mimetypes.guess_type(path)[0] or "application/octet-stream"

    resp = Response(data, mimetype=mime)
    resp.set_etag(etag)
    resp.headers["Cache-Control"] = cache_control_for(path)
    return resp.make_conditional(request)
