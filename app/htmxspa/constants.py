"""
Central constants for the HTMX SPA application.
"""
from __future__ import annotations

VERSION = "0.1.0"

# Requests under these prefixes skip CSRF and request bookkeeping.
UNGUARDED_PATH_PREFIXES = ("/static/", "/health", "/healthz", "/metrics")

MUTATING_METHODS = ("POST", "PUT", "PATCH", "DELETE")

# Cross-origin callers
CORS_METHODS = ("GET", "POST", "PUT", "DELETE")
CORS_ALLOW_HEADERS = (
    "Content-Type",
    "Accept",
    "X-CSRF-Token",
    "HX-Request",
    "HX-Current-URL",
    "HX-Target",
    "HX-Trigger",
)
CORS_EXPOSE_HEADERS = ("HX-Retarget", "HX-Reswap", "HX-Push-Url", "X-Request-ID")
