from app.models import BlogCategory


def post_payload(**overrides):
    payload = {
        "title": "Summer Picks",
        "slug": "summer-picks",
        "content": "Our favourite products this summer.",
        "tags": ["summer", "guides"],
    }
    payload.update(overrides)
    return payload


def test_admin_creates_post_with_categories(admin_client, session, admin):
    news = BlogCategory(name="News", slug="news")
    session.add(news)
    session.commit()

    response = admin_client.post("/api/admin/blog/posts", json=post_payload(category_ids=[news.id], is_published=True))

    assert response.status_code == 201
    post = response.json()
    assert post["author_id"] == admin.id
    assert post["tags"] == ["summer", "guides"]
    assert [c["slug"] for c in post["categories"]] == ["news"]
    assert post["published_at"] is not None


def test_post_slug_unique_and_required_fields(admin_client):
    assert admin_client.post("/api/admin/blog/posts", json=post_payload()).status_code == 201
    assert admin_client.post("/api/admin/blog/posts", json=post_payload(title="Again")).status_code == 400
    assert admin_client.post("/api/admin/blog/posts", json={"title": "No body", "slug": "no-body"}).status_code == 422


def test_admin_list_search_and_paging(admin_client):
    for i in range(3):
        admin_client.post("/api/admin/blog/posts", json=post_payload(slug=f"post-{i}", title=f"Post {i}", tags=[]))
    admin_client.post("/api/admin/blog/posts", json=post_payload(slug="tagged", title="Other", tags=["gadgets"]))

    page = admin_client.get("/api/admin/blog/posts", params={"take": 2, "skip": 0}).json()
    assert page["total"] == 4
    assert len(page["items"]) == 2
    assert page["has_more"] is True

    found = admin_client.get("/api/admin/blog/posts", params={"search": "gadget"}).json()
    assert [p["slug"] for p in found["items"]] == ["tagged"]
    assert found["has_more"] is False


def test_update_post_publishes_and_replaces_tags(admin_client):
    post = admin_client.post("/api/admin/blog/posts", json=post_payload()).json()
    assert post["published_at"] is None

    updated = admin_client.put(f"/api/admin/blog/posts/{post['id']}", json={"is_published": True, "tags": ["news"]})

    assert updated.status_code == 200
    assert updated.json()["published_at"] is not None
    assert updated.json()["tags"] == ["news"]


def test_public_blog_shows_published_only(admin_client):
    admin_client.post("/api/admin/blog/posts", json=post_payload(slug="live", is_published=True))
    admin_client.post("/api/admin/blog/posts", json=post_payload(slug="draft"))

    listed = admin_client.get("/api/blog/posts").json()
    assert [p["slug"] for p in listed["items"]] == ["live"]
    assert admin_client.get("/api/blog/posts/draft").status_code == 404
    assert admin_client.get("/api/blog/posts/live").status_code == 200


def test_public_blog_filters(admin_client, session):
    news = BlogCategory(name="News", slug="news")
    session.add(news)
    session.commit()
    admin_client.post("/api/admin/blog/posts", json=post_payload(
        slug="in-news", is_published=True, category_ids=[news.id], tags=["launch"]
    ))
    admin_client.post("/api/admin/blog/posts", json=post_payload(slug="elsewhere", is_published=True, tags=["launches"]))

    by_category = admin_client.get("/api/blog/posts", params={"category": "news"}).json()
    assert [p["slug"] for p in by_category["items"]] == ["in-news"]

    by_tag = admin_client.get("/api/blog/posts", params={"tag": "launch"}).json()
    assert [p["slug"] for p in by_tag["items"]] == ["in-news"]


def test_category_in_use_cannot_be_deleted(admin_client):
    category = admin_client.post("/api/admin/blog/categories", json={"name": "Tips", "slug": "tips"}).json()
    assert admin_client.post("/api/admin/blog/categories", json={"name": "Tips 2", "slug": "tips"}).status_code == 400

    post = admin_client.post("/api/admin/blog/posts", json=post_payload(category_ids=[category["id"]])).json()

    response = admin_client.delete(f"/api/admin/blog/categories/{category['id']}")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete category with associated posts"

    admin_client.delete(f"/api/admin/blog/posts/{post['id']}")
    assert admin_client.delete(f"/api/admin/blog/categories/{category['id']}").status_code == 200


def test_blog_admin_requires_admin(customer_client):
    assert customer_client.get("/api/admin/blog/posts").status_code == 401
