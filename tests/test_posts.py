from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from blog_api.models import Post
from blog_api.utils import generate_slug, pagination_meta


@pytest.mark.parametrize(
    "title,slug",
    [
        ("Hello World", "hello-world"),
        ("Hello, World! 2024", "hello-world-2024"),
        ("  Spaces   everywhere  ", "spaces-everywhere"),
        ("already-dashed -- title", "already-dashed-title"),
        ("Ünïcode & symbols", "ncode-symbols"),
        ("!!!", ""),
    ],
)
def test_generate_slug(title, slug):
    assert generate_slug(title) == slug


def test_pagination_meta():
    assert pagination_meta(page=2, limit=10, total=25) == {
        "page": 2,
        "limit": 10,
        "total": 25,
        "totalPages": 3,
        "hasNext": True,
        "hasPrev": True,
    }
    last = pagination_meta(page=3, limit=10, total=25)
    assert (last["hasNext"], last["hasPrev"]) == (False, True)
    assert pagination_meta(page=1, limit=10, total=0)["totalPages"] == 0
    assert "hasNext" not in pagination_meta(page=1, limit=5, total=7, with_nav=False)


def _seed_posts(database, n, category_id=None):
    base = datetime(2025, 1, 1)
    with database.session() as db:
        for i in range(n):
            db.add(
                Post(
                    title=f"Post {i}",
                    slug=f"post-{i}",
                    content="x",
                    category_id=category_id,
                    created_at=base + timedelta(minutes=i),
                    updated_at=base + timedelta(minutes=i),
                )
            )
        db.commit()


def test_list_posts_newest_first_with_pagination(client, database, category):
    _seed_posts(database, 12, category.id)

    r = client.get("/api/v1/allposts", params={"page": 2, "limit": 5})

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert [p["slug"] for p in body["data"]] == ["post-6", "post-5", "post-4", "post-3", "post-2"]
    assert body["data"][0]["category_name"] == "Tech"
    assert body["pagination"] == {
        "page": 2,
        "limit": 5,
        "total": 12,
        "totalPages": 3,
        "hasNext": True,
        "hasPrev": True,
    }


def test_list_posts_defaults(client, database):
    _seed_posts(database, 3)
    body = client.get("/api/v1/allposts").json()
    assert body["pagination"]["page"] == 1
    assert body["pagination"]["limit"] == 10
    assert len(body["data"]) == 3


def test_list_posts_rejects_bad_paging(client):
    assert client.get("/api/v1/allposts", params={"page": 0}).status_code == 400
    assert client.get("/api/v1/allposts", params={"limit": 1000}).status_code == 400


def test_get_post(client, post):
    r = client.get(f"/api/v1/post/{post.id}")
    assert r.status_code == 200
    assert r.json()["data"]["title"] == "First Post"
    assert r.json()["data"]["category_name"] == "Tech"

    assert client.get("/api/v1/post/slug/first-post").json()["data"]["id"] == post.id


def test_get_missing_post_is_404(client):
    r = client.get("/api/v1/post/999")
    assert r.status_code == 404
    assert r.json() == {"message": "Post not found"}


def test_create_post_requires_session(client, category):
    r = client.post("/api/v1/post", json={"title": "T", "content": "C"})
    assert r.status_code == 401


def test_create_post(admin_client, category):
    r = admin_client.post(
        "/api/v1/post",
        json={"title": "My New Post!", "content": "Hello", "category": "Tech", "excerpt": "Hi"},
    )

    assert r.status_code == 201
    data = r.json()["data"]
    assert data["slug"] == "my-new-post"
    assert data["category_id"] == category.id
    assert data["category_name"] == "Tech"
    assert data["read_time"] == "5 min"


def test_create_post_validation(admin_client, post):
    r = admin_client.post("/api/v1/post", json={"title": "Only title"})
    assert r.status_code == 400
    assert r.json() == {"message": "Title and content are required"}

    r = admin_client.post("/api/v1/post", json={"title": "Dup", "content": "c", "slug": "first-post"})
    assert r.status_code == 400
    assert r.json() == {"message": "A post with this slug already exists"}

    r = admin_client.post("/api/v1/post", json={"title": "Nope", "content": "c", "category": "Missing"})
    assert r.status_code == 400
    assert r.json() == {"message": "Category not found"}


def test_update_post_is_partial(admin_client, post):
    r = admin_client.put(f"/api/v1/post/{post.id}", json={"excerpt": "Short"})

    assert r.status_code == 200
    data = r.json()["data"]
    assert data["excerpt"] == "Short"
    assert data["title"] == "First Post"
    assert data["slug"] == "first-post"
    assert data["category_name"] == "Tech"


def test_update_post_slug_conflict(admin_client, database, post):
    _seed_posts(database, 1)
    r = admin_client.put(f"/api/v1/post/{post.id}", json={"slug": "post-0"})
    assert r.status_code == 400

    # Re-submitting its own slug is fine
    assert admin_client.put(f"/api/v1/post/{post.id}", json={"slug": "first-post"}).status_code == 200


def test_duplicate_slug_caught_at_commit(admin_client, database, post, monkeypatch):
    # Pre-insert check misses the row (concurrent insert); the unique index still holds
    monkeypatch.setattr("blog_api.routes.posts._slug_taken", lambda *a, **k: False)

    r = admin_client.post("/api/v1/post", json={"title": "Dup", "content": "c", "slug": "first-post"})
    assert r.status_code == 400
    assert r.json() == {"message": "A post with this slug already exists"}

    _seed_posts(database, 1)
    r = admin_client.put(f"/api/v1/post/{post.id}", json={"slug": "post-0"})
    assert r.status_code == 400
    assert r.json() == {"message": "A post with this slug already exists"}

    with database.session() as db:
        assert db.query(Post).filter(Post.slug == "first-post").count() == 1


def test_update_missing_post_is_404(admin_client):
    assert admin_client.put("/api/v1/post/404", json={"title": "x"}).status_code == 404


def test_delete_post(admin_client, post):
    r = admin_client.delete(f"/api/v1/post/{post.id}")
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Post deleted successfully"}
    assert admin_client.get(f"/api/v1/post/{post.id}").status_code == 404
    assert admin_client.delete(f"/api/v1/post/{post.id}").status_code == 404
