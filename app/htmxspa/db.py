from __future__ import annotations

import logging
from contextlib import contextmanager
from collections.abc import Generator
from dataclasses import dataclass

from flask import Flask, g
from sqlalchemy import Engine, create_engine, event, func, select, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from app.htmxspa.errors import StoreError
from app.htmxspa.models import SchemaMigration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    version: int
    statements: tuple[str, ...]


# Append only. Each version runs once and is recorded in schema_migrations.
MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        version=1,
        statements=(
            """
            CREATE TABLE IF NOT EXISTS todos (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                completed BOOLEAN NOT NULL DEFAULT 0,
                created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                email TEXT NOT NULL UNIQUE,
                created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """,
        ),
    ),
    Migration(
        version=2,
        statements=(
            "CREATE INDEX IF NOT EXISTS idx_users_name ON users(name)",
            "CREATE INDEX IF NOT EXISTS idx_users_email ON users(email)",
            "CREATE INDEX IF NOT EXISTS idx_todos_completed ON todos(completed)",
        ),
    ),
)

_SCHEMA_MIGRATIONS_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    applied_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""


def create_store_engine(
    db_url: str,
    *,
    pool_size: int = 5,
    pool_timeout: int = 8,
    busy_timeout_ms: int = 10000,
) -> Engine:
    url = make_url(db_url)
    is_sqlite = url.get_backend_name() == "sqlite"
    in_memory = is_sqlite and (url.database in (None, "", ":memory:"))

    engine_kwargs: dict[str, object] = {"pool_pre_ping": True}
    if not in_memory:
        # Fixed-size pool: callers queue for up to pool_timeout instead of opening more connections.
        engine_kwargs.update(
            {
                "pool_size": pool_size,
                "max_overflow": 0,
                "pool_timeout": pool_timeout,
                "pool_recycle": 3600,
            }
        )
    if is_sqlite:
        engine_kwargs["connect_args"] = {"check_same_thread": False}

    engine = create_engine(db_url, **engine_kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_connection, connection_record):  # type: ignore[no-redef]
            cur = dbapi_connection.cursor()
            try:
                if not in_memory:
                    cur.execute("PRAGMA journal_mode=WAL")
                cur.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
                cur.execute("PRAGMA synchronous=NORMAL")
                cur.execute("PRAGMA temp_store=MEMORY")
            finally:
                cur.close()

    return engine


def make_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


def init_db(app: Flask) -> None:
    engine = create_store_engine(
        app.config["DATABASE_URL"],
        pool_size=app.config.get("DB_POOL_SIZE", 5),
        pool_timeout=app.config.get("DB_POOL_TIMEOUT", 8),
        busy_timeout_ms=app.config.get("DB_BUSY_TIMEOUT_MS", 10000),
    )
    if app.config.get("ENV") != "production":
        @event.listens_for(engine, "checkout")
        def _receive_checkout(dbapi_connection, connection_record, connection_proxy):  # type: ignore[no-redef]
            app.logger.debug("DB connection checkout from pool")
    app.extensions["sqlalchemy_engine"] = engine
    app.extensions["sqlalchemy_sessionmaker"] = make_sessionmaker(engine)


def db_session(app: Flask | None = None) -> Session:
    """
    Request-scoped session. Use inside request handlers.
    """
    if hasattr(g, "db_session") and g.db_session is not None:
        return g.db_session
    if app is None:
        from flask import current_app

        app = current_app
    sm = app.extensions["sqlalchemy_sessionmaker"]
    g.db_session = sm()  # type: ignore[assignment]
    return g.db_session


def teardown_db_session(exc: BaseException | None) -> None:
    s: Session | None = getattr(g, "db_session", None)
    if s is not None:
        if exc is not None:
            s.rollback()
        s.close()
        g.db_session = None


@contextmanager
def session_scope(app: Flask) -> Generator[Session, None, None]:
    """
    Non-request helper for scripts and tests: yields a session and commits/rolls back.
    """
    sm = app.extensions["sqlalchemy_sessionmaker"]
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


def current_schema_version(engine: Engine) -> int:
    with engine.connect() as conn:
        conn.execute(text(_SCHEMA_MIGRATIONS_DDL))
        conn.commit()
        version = conn.execute(select(func.max(SchemaMigration.version))).scalar()
    return version or 0


def run_migrations(engine: Engine, migrations: tuple[Migration, ...] = MIGRATIONS) -> int:
    """
    Apply every migration newer than the recorded schema version in one transaction.
    Returns the number of versions applied.
    """
    try:
        last_applied = current_schema_version(engine)
        applied = 0
        with engine.begin() as conn:
            for migration in migrations:
                if migration.version <= last_applied:
                    continue
                logger.info("Applying schema migration version %s", migration.version)
                for stmt in migration.statements:
                    conn.execute(text(stmt))
                conn.execute(SchemaMigration.__table__.insert().values(version=migration.version))
                applied += 1
    except Exception as e:
        raise StoreError(f"Schema migration failed: {e}") from e
    logger.info("Schema migrations complete (%s applied)", applied)
    return applied


def dispose_engine_on_fork(app: Flask) -> None:
    import os

    if hasattr(os, "register_at_fork"):
        def _after_fork_child():
            engine = app.extensions.get("sqlalchemy_engine")
            if engine:
                engine.dispose(close=False)
                app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

        os.register_at_fork(after_in_child=_after_fork_child)
