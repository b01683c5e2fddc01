from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from blog_api.config import Settings
from blog_api.database import Database
from blog_api.main import create_app
from blog_api.models import Admin, Category, Post, User
from blog_api.security import hash_password

TEST_SECRET = "test-secret-for-signing"
ADMIN_EMAIL = "admin@x.com"
ADMIN_PASSWORD = "right"
ADMIN_NAME = "Site Admin"


@pytest.fixture()
def settings() -> Settings:
    return Settings(database_url="sqlite://", jwt_secret=TEST_SECRET, log_level="WARNING")


@pytest.fixture()
def database() -> Database:
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture()
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def admin(database) -> Admin:
    with database.session() as db:
        row = Admin(
            username=ADMIN_NAME,
            email=ADMIN_EMAIL,
            password_hash=hash_password(ADMIN_PASSWORD),
            role="admin",
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row


@pytest.fixture()
def admin_client(client, admin):
    """Client holding a valid session cookie."""
    r = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert r.status_code == 200
    return client


@pytest.fixture()
def category(database) -> Category:
    with database.session() as db:
        row = Category(name="Tech", slug="tech", description="Technology")
        db.add(row)
        db.commit()
        db.refresh(row)
        return row


@pytest.fixture()
def user(database) -> User:
    with database.session() as db:
        row = User(username="reader", email="reader@x.com", password_hash=hash_password("pw"))
        db.add(row)
        db.commit()
        db.refresh(row)
        return row


@pytest.fixture()
def post(database, category) -> Post:
    with database.session() as db:
        row = Post(title="First Post", slug="first-post", content="Body", category_id=category.id)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
