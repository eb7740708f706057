import pytest

from app.htmxspa import create_app
from app.htmxspa.errors import StoreError


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    return app.test_client()


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True
    assert r.json["database"] == "ok"
    assert r.json["version"]


def test_healthz_ok(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_request_id_is_echoed(client):
    r = client.get("/healthz", headers={"X-Request-ID": "abc123"})
    assert r.headers["X-Request-ID"] == "abc123"

    r = client.get("/healthz")
    assert len(r.headers["X-Request-ID"]) == 32


def test_unknown_route_renders_error_fragment(client):
    r = client.get("/no/such/page")
    assert r.status_code == 404
    assert b'class="error-fragment"' in r.data
    assert b'data-status="404"' in r.data


def test_startup_fails_when_store_unreachable(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    # Parent directory does not exist, so SQLite cannot create the file.
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'missing'/'dir'/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    with pytest.raises(StoreError):
        create_app()


def test_production_refuses_default_secret(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "change-me")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "production")

    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        create_app()


def test_schema_migrations_run_once(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    from app.htmxspa.db import MIGRATIONS, current_schema_version, run_migrations

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    assert current_schema_version(engine) == MIGRATIONS[-1].version
    assert run_migrations(engine) == 0

    # A second app on the same file neither re-migrates nor re-seeds.
    app2 = create_app()
    r = app2.test_client().get("/health")
    assert r.status_code == 200
