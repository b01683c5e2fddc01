from __future__ import annotations

from click.testing import CliRunner
from fastapi.testclient import TestClient

from blog_api.cli import cli, create_admin
from blog_api.database import Database
from blog_api.models import Admin
from blog_api.security import verify_password


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_db_ping_goes_through_pool(client):
    assert client.get("/db-ping").json() == {"db": "ok", "select_1": 1}


def test_security_headers(client):
    r = client.get("/health")
    assert r.headers["x-content-type-options"] == "nosniff"
    assert r.headers["x-frame-options"] == "SAMEORIGIN"
    assert "strict-transport-security" not in r.headers


def test_cors_preflight_allows_frontend_with_credentials(client):
    r = client.options(
        "/api/admin/login",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert r.headers["access-control-allow-credentials"] == "true"


def test_unknown_route_uses_error_envelope(client):
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert r.json() == {"message": "Not Found"}


def test_malformed_json_is_400(client):
    r = client.post("/api/admin/login", content="{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid request"


def test_unexpected_exception_is_generic_500(app):
    @app.get("/boom")
    def boom() -> dict:
        raise RuntimeError("secret internals")

    with TestClient(app, raise_server_exceptions=False) as c:
        r = c.get("/boom")

    assert r.status_code == 500
    assert r.json() == {"message": "Internal server error"}
    assert "secret internals" not in r.text


def test_create_admin_is_upsert(database):
    first = create_admin(database, email="root@x.com", name="Root", password="one")
    second = create_admin(database, email="root@x.com", name="Root Two", password="two")

    assert first.id == second.id
    with database.session() as db:
        rows = db.query(Admin).filter(Admin.email == "root@x.com").all()
        assert len(rows) == 1
        assert rows[0].username == "Root Two"
        assert verify_password("two", rows[0].password_hash)
        assert not verify_password("one", rows[0].password_hash)


def test_create_admin_command(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'blog.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("NODE_ENV", raising=False)
    runner = CliRunner()

    assert runner.invoke(cli, ["init-db"]).exit_code == 0

    result = runner.invoke(cli, ["create-admin", "--email", "ops@x.com", "--name", "Ops"], input="s3cret\ns3cret\n")
    assert result.exit_code == 0, result.output
    assert "Admin ops@x.com ready" in result.output

    database = Database(url)
    try:
        with database.session() as db:
            row = db.query(Admin).filter(Admin.email == "ops@x.com").one()
            assert row.username == "Ops"
            assert verify_password("s3cret", row.password_hash)
    finally:
        database.dispose()

    result = runner.invoke(cli, ["create-admin", "--email", "ops@x.com", "--name", "Ops", "--password", ""])
    assert result.exit_code == 2


def test_persistence_query_returns_dicts(database):
    database.query(
        "INSERT INTO subscribers (email, created_at) VALUES (:email, CURRENT_TIMESTAMP)",
        {"email": "q@x.com"},
    )
    rows = database.query("SELECT email FROM subscribers WHERE email = :email", {"email": "q@x.com"})
    assert rows == [{"email": "q@x.com"}]
