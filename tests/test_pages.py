import pytest

from app.htmxspa import create_app

MAIN_OPEN = b'<main id="main" class="container">'


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    return app.test_client()


def _inner(full_page: bytes) -> bytes:
    start = full_page.index(MAIN_OPEN) + len(MAIN_OPEN)
    end = full_page.index(b"</main>", start)
    return full_page[start:end]


@pytest.mark.parametrize(
    "full_url,fragment_url",
    [("/", "/page/home"), ("/todos", "/page/todos"), ("/users", "/page/users")],
)
def test_full_page_and_fragment_render_identical_content(client, full_url, fragment_url):
    full = client.get(full_url)
    fragment = client.get(fragment_url)
    assert full.status_code == 200
    assert fragment.status_code == 200

    assert full.data.lstrip().lower().startswith(b"<!doctype html>")
    assert b"<html" not in fragment.data
    assert _inner(full.data) == fragment.data


def test_fragment_routes_push_canonical_url(client):
    assert client.get("/page/home").headers["HX-Push-Url"] == "/"
    assert client.get("/page/todos").headers["HX-Push-Url"] == "/todos"
    assert client.get("/page/users").headers["HX-Push-Url"] == "/users"


def test_unknown_fragment_is_404(client):
    r = client.get("/page/nope")
    assert r.status_code == 404
    assert b"No page named" in r.data


def test_todos_page_shows_seeded_todos_and_stats(client):
    r = client.get("/page/todos")
    body = r.data
    assert b'id="todo-stats"' in body
    assert b'id="todo-list"' in body
    assert b"<strong>3</strong><span>Total</span>" in body
    assert b"<strong>1</strong><span>Completed</span>" in body
    # newest first
    assert body.index(b"Build a web app") < body.index(b"Learn Flask")


def test_full_page_layout_marks_active_nav_and_carries_csrf(client):
    r = client.get("/users")
    assert b'href="/users" hx-get="/page/users" class="active"' in r.data
    assert b'hx-headers=\'{"X-CSRF-Token": "' in r.data


def test_home_shows_counts(client):
    r = client.get("/page/home")
    assert b"<strong>3</strong>" in r.data
    assert b"<strong>4</strong>" in r.data


def test_modal_example_fragment(client):
    r = client.get("/modal/example")
    assert r.status_code == 200
    assert b'role="dialog"' in r.data
    assert b"Example modal" in r.data
    assert b"<html" not in r.data
