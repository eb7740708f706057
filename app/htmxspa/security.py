import re
import secrets

from flask import Request, session

CSRF_HEADER = "X-CSRF-Token"

_SECRET_PAIRS = re.compile(r"(?P<key>password|api_key|token)=(?P<value>[^&\s]+)", re.IGNORECASE)
# Bearer JWTs only: three dot-separated segments
_BEARER_JWT = re.compile(r"(?P<key>Bearer )(?P<value>[\w-]+\.[\w-]+\.[\w-]+)")


def ensure_csrf_token() -> str:
    """Ensure a CSRF token exists in the session and return it."""
    token = session.get("csrf_token")
    if not token:
        token = secrets.token_urlsafe(32)
        session["csrf_token"] = token
    return token


def validate_csrf(req: Request) -> bool:
    """Validate CSRF token from the HTMX header or a form field."""
    token = req.headers.get(CSRF_HEADER) or req.form.get("csrf_token")
    expected = session.get("csrf_token")
    return bool(token and expected and secrets.compare_digest(token, expected))


def sanitize_log_message(message: str) -> str:
    """Mask credentials (password=, api_key=, token=, bearer JWTs) before they reach the logs."""
    message = _SECRET_PAIRS.sub(lambda m: f"{m.group('key')}=********", message)
    return _BEARER_JWT.sub(lambda m: f"{m.group('key')}********", message)
