import sys
from pathlib import Path
import os

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.htmxspa.db import create_store_engine, make_sessionmaker, run_migrations
from app.htmxspa.store import seed_demo_data


def init_db(*, database_url: str | None = None, seed: bool = True) -> None:
    """
    Apply schema migrations and, unless disabled, seed demo data into empty tables.
    Safe to re-run: applied migration versions are skipped and seeding only touches empty tables.
    """
    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///app.db").strip()

    engine = create_store_engine(db_url)
    try:
        applied = run_migrations(engine)
        print(f"Applied {applied} schema migration(s).", flush=True)
        if not seed:
            return
        sm = make_sessionmaker(engine)
        with sm.begin() as s:
            inserted = seed_demo_data(s)
        print(f"Seeded demo data: {inserted['todos']} todos, {inserted['users']} users.", flush=True)
    finally:
        engine.dispose()


def main() -> None:
    seed = (os.environ.get("SEED_DEMO_DATA") or "1").strip().lower() in ("1", "true", "yes", "on")
    init_db(database_url=None, seed=seed)


if __name__ == "__main__":
    main()
