#!/usr/bin/env python3
"""
Production startup script.

1. Runs migrations + seed (init_db.py; SEED_DEMO_DATA=0 skips the seed)
2. Starts gunicorn (replaces this process via os.execvp)

Usage:
    python scripts/start.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def validate_port(raw: str | None) -> str:
    port = (raw or "").strip()
    if not port:
        print("WARNING: PORT not set, using default 8080", flush=True)
        port = "8080"
    port_int = int(port)
    if port_int < 1 or port_int > 65535:
        raise ValueError("Port out of range")
    return port


def gunicorn_argv(port: str) -> list[str]:
    # single worker, threaded (SQLite is single-writer)
    threads = (os.environ.get("GUNICORN_THREADS") or "8").strip()
    return [
        "gunicorn",
        "app.wsgi:app",
        "--bind", f"0.0.0.0:{port}",
        "--workers", "1",
        "--threads", threads,
        "--timeout", "60",
        "--access-logfile", "-",
        "--error-logfile", "-",
    ]


def main() -> None:
    try:
        port = validate_port(os.environ.get("PORT"))
    except ValueError:
        print(f"ERROR: Invalid PORT value '{os.environ.get('PORT')}'. Must be integer 1-65535.", flush=True)
        sys.exit(1)

    print(f"PORT={port} validated", flush=True)

    print("=== Running database init ===", flush=True)
    from scripts.init_db import main as init_db_main
    try:
        init_db_main()
    except Exception as e:
        print(f"Database init failed: {e}", flush=True)
        sys.exit(1)

    print("=== Starting gunicorn ===", flush=True)
    print(f"Gunicorn binding to 0.0.0.0:{port}", flush=True)

    # exec so gunicorn becomes PID 1 and receives signals directly
    os.execvp("gunicorn", gunicorn_argv(port))


if __name__ == "__main__":
    main()
