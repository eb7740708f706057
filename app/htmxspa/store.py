"""
Record store start-up: schema migrations and first-run demo data.

Seeding checks table emptiness and inserts; two processes starting against the
same empty database at once can both insert. Not handled.
"""

from __future__ import annotations

import logging

from flask import Flask
from sqlalchemy.orm import Session

from app.htmxspa.db import run_migrations, session_scope
from app.htmxspa.modules.todos.service import seed_demo_todos
from app.htmxspa.modules.users.service import seed_demo_users

logger = logging.getLogger(__name__)


def seed_demo_data(s: Session) -> dict[str, int]:
    inserted = {"todos": seed_demo_todos(s), "users": seed_demo_users(s)}
    s.flush()
    return inserted


def bootstrap_store(app: Flask) -> None:
    """
    Migrate (fatal on failure) then seed (logged on failure, start-up continues).
    """
    run_migrations(app.extensions["sqlalchemy_engine"])

    if not app.config.get("SEED_DEMO_DATA", True):
        return
    try:
        with session_scope(app) as s:
            inserted = seed_demo_data(s)
    except Exception as e:
        logger.warning("Demo data seeding failed: %s", e)
        return
    if inserted["todos"]:
        logger.info("Seeded %s demo todos", inserted["todos"])
    if inserted["users"]:
        logger.info("Seeded %s demo users", inserted["users"])
