import re

import pytest

from app.htmxspa import create_app

CSRF = "test-csrf-token"


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("SEED_DEMO_DATA", "0")

    app = create_app()
    c = app.test_client()
    with c.session_transaction() as sess:
        sess["csrf_token"] = CSRF
    return c


def _headers():
    return {"X-CSRF-Token": CSRF, "HX-Request": "true"}


def _stats_in(body: bytes) -> tuple[int, int, int]:
    found = re.findall(rb"<strong>(\d+)</strong><span>(Total|Completed|Pending)</span>", body)
    values = {label.decode(): int(n) for n, label in found}
    return values["Total"], values["Completed"], values["Pending"]


def _create(client, title="buy milk"):
    return client.post("/api/todos", data={"title": title}, headers=_headers())


def test_create_form_fragment(client):
    r = client.get("/todos/create")
    assert r.status_code == 200
    assert b'hx-post="/api/todos"' in r.data
    assert b'name="title"' in r.data
    assert b"<html" not in r.data


def test_create_returns_item_and_oob_stats(client):
    r = _create(client)
    assert r.status_code == 200
    assert r.headers["HX-Retarget"] == "#todo-list"
    assert r.headers["HX-Reswap"] == "afterbegin"

    body = r.data
    item_at = body.index(b'<li id="todo-1"')
    oob_at = body.index(b'<div id="todo-stats" class="stats-grid" hx-swap-oob="true">')
    assert item_at < oob_at
    assert b"buy milk" in body
    assert _stats_in(body) == (1, 0, 1)


def test_create_escapes_title(client):
    r = _create(client, "<script>alert(1)</script>")
    assert r.status_code == 200
    assert b"<script>alert(1)</script>" not in r.data
    assert b"&lt;script&gt;" in r.data


def test_create_blank_title_is_400(client):
    r = _create(client, "   ")
    assert r.status_code == 400
    assert b"Title is required." in r.data
    assert b"hx-swap-oob" not in r.data

    r = client.get("/todos/list")
    assert not re.search(rb'<li id="todo-\d', r.data)


def test_mutation_without_csrf_token_is_rejected(client):
    r = client.post("/api/todos", data={"title": "sneaky"})
    assert r.status_code == 400
    assert b"CSRF token missing or invalid." in r.data

    r = client.post("/api/todos", data={"title": "sneaky"}, headers={"X-CSRF-Token": "wrong"})
    assert r.status_code == 400


def test_csrf_form_field_is_accepted(client):
    r = client.post("/api/todos", data={"title": "via form", "csrf_token": CSRF})
    assert r.status_code == 200


def test_toggle_returns_item_and_oob_stats(client):
    _create(client)
    r = client.put("/todos/1/toggle", headers=_headers())
    assert r.status_code == 200
    assert b'<li id="todo-1" class="todo-item completed">' in r.data
    assert b'hx-swap-oob="true"' in r.data
    assert _stats_in(r.data) == (1, 1, 0)

    r = client.put("/todos/1/toggle", headers=_headers())
    assert b'<li id="todo-1" class="todo-item">' in r.data
    assert _stats_in(r.data) == (1, 0, 1)


def test_toggle_missing_is_404(client):
    r = client.put("/todos/999/toggle", headers=_headers())
    assert r.status_code == 404
    assert b"Todo 999 does not exist." in r.data


def test_delete_returns_only_oob_fragments(client):
    _create(client, "one")
    _create(client, "two")
    r = client.delete("/todos/1", headers=_headers())
    assert r.status_code == 200
    assert r.data.startswith(b'<div id="todo-stats"')
    assert not re.search(rb'<li id="todo-\d', r.data)
    assert b'<li id="todo-empty" class="empty" hidden hx-swap-oob="true">' in r.data
    assert _stats_in(r.data) == (1, 0, 1)

    r = client.delete("/todos/1", headers=_headers())
    assert r.status_code == 404


def test_list_is_newest_first(client):
    _create(client, "older")
    _create(client, "newer")
    r = client.get("/todos/list")
    assert r.status_code == 200
    assert r.data.index(b'id="todo-2"') < r.data.index(b'id="todo-1"')


def test_buy_milk_scenario_over_http(client):
    r = _create(client, "buy milk")
    assert _stats_in(r.data) == (1, 0, 1)

    r = client.put("/todos/1/toggle", headers=_headers())
    assert _stats_in(r.data) == (1, 1, 0)

    r = client.delete("/todos/1", headers=_headers())
    assert _stats_in(r.data) == (0, 0, 0)

    r = client.get("/todos/list")
    assert b"Nothing to do." in r.data


def test_empty_notice_tracks_list_contents(client):
    r = client.get("/page/todos")
    assert b'<li id="todo-empty" class="empty">Nothing to do.</li>' in r.data

    # first item hides the notice
    r = _create(client, "first")
    assert b'<li id="todo-empty" class="empty" hidden hx-swap-oob="true">' in r.data
    assert b'<li id="todo-empty" class="empty" hidden>' in client.get("/todos/list").data

    # deleting the last item brings it back
    r = client.delete("/todos/1", headers=_headers())
    assert b'<li id="todo-empty" class="empty" hx-swap-oob="true">Nothing to do.</li>' in r.data
    assert b'<li id="todo-empty" class="empty">Nothing to do.</li>' in client.get("/todos/list").data


def test_toggle_leaves_empty_notice_alone(client):
    _create(client)
    r = client.put("/todos/1/toggle", headers=_headers())
    assert b"todo-empty" not in r.data
