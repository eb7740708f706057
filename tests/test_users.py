import pytest

from app.htmxspa import create_app


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    return app.test_client()


def test_list_all_users_in_id_order(client):
    r = client.get("/users/list")
    assert r.status_code == 200
    body = r.data
    positions = [body.index(email) for email in (b"alice@", b"bob@", b"carol@", b"dave@")]
    assert positions == sorted(positions)


def test_empty_search_matches_list(client):
    listed = client.get("/users/list").data
    assert client.get("/users/search?q=").data == listed
    assert client.get("/users/search").data == listed


def test_search_filters_case_insensitively(client):
    r = client.get("/users/search?q=CAROL")
    assert r.status_code == 200
    assert b"carol@example.com" in r.data
    assert b"alice@example.com" not in r.data


def test_search_with_no_matches_is_not_an_error(client):
    r = client.get("/users/search?q=zzz-nobody")
    assert r.status_code == 200
    assert b"No users match" in r.data
    assert b"zzz-nobody" in r.data
    assert b"<table" not in r.data


def test_detail(client):
    r = client.get("/users/1/detail")
    assert r.status_code == 200
    assert b"Alice Johnson" in r.data
    assert b"alice@example.com" in r.data


def test_detail_missing_is_404(client):
    r = client.get("/users/999/detail")
    assert r.status_code == 404
    assert b"User 999 does not exist." in r.data
