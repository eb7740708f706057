import pytest

from scripts.init_db import init_db
from scripts.start import gunicorn_argv, validate_port


def test_init_db_is_rerunnable(tmp_path, capsys):
    url = f"sqlite:///{tmp_path/'script.db'}"
    init_db(database_url=url)
    first = capsys.readouterr().out
    assert "Applied 2 schema migration(s)." in first
    assert "3 todos, 4 users" in first

    init_db(database_url=url)
    second = capsys.readouterr().out
    assert "Applied 0 schema migration(s)." in second
    assert "0 todos, 0 users" in second


def test_validate_port():
    assert validate_port("9000") == "9000"
    assert validate_port(None) == "8080"
    with pytest.raises(ValueError):
        validate_port("70000")
    with pytest.raises(ValueError):
        validate_port("abc")


def test_gunicorn_argv_targets_wsgi_app():
    argv = gunicorn_argv("9000")
    assert argv[:2] == ["gunicorn", "app.wsgi:app"]
    assert "0.0.0.0:9000" in argv


def test_start_honours_seed_flag_then_execs_gunicorn(tmp_path, monkeypatch, capsys):
    import scripts.start as start

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'start.db'}")
    monkeypatch.setenv("SEED_DEMO_DATA", "0")
    monkeypatch.setenv("PORT", "9001")
    calls = []
    monkeypatch.setattr(start.os, "execvp", lambda file, argv: calls.append((file, argv)))

    start.main()

    out = capsys.readouterr().out
    assert "Applied 2 schema migration(s)." in out
    assert "Seeded demo data" not in out
    assert calls == [("gunicorn", gunicorn_argv("9001"))]
