"""Admin articles: slugs, publishing, inline images and ownership."""

from __future__ import annotations

from PIL import Image

from woodland.config import settings
from woodland.models import UserRole

ARTICLE_DIR = settings.upload_dir("article")


def _article(**overrides) -> dict:
    body = {
        "title": "Managing Hazel Coppice",
        "content": "Coppicing on a seven year rotation keeps the woodland open.",
        "tags": ["coppice", "hazel"],
        "category": "guides",
    }
    body.update(overrides)
    return body


def _create(client, **overrides):
    return client.post("/api/admin/article", json=_article(**overrides))


class TestSlugs:
    def test_slug_is_derived_from_title(self, editor_client):
        resp = _create(editor_client)
        assert resp.status_code == 201
        assert resp.json()["data"]["slug"] == "managing-hazel-coppice"

    def test_duplicate_titles_get_numbered_slugs(self, editor_client):
        slugs = [_create(editor_client).json()["data"]["slug"] for _ in range(3)]
        assert slugs == [
            "managing-hazel-coppice",
            "managing-hazel-coppice-2",
            "managing-hazel-coppice-3",
        ]

    def test_explicit_slug_is_normalised(self, editor_client):
        resp = _create(editor_client, slug="Hazel Guide 2026")
        assert resp.json()["data"]["slug"] == "hazel-guide-2026"

    def test_non_latin_title_gets_fallback_slug(self, editor_client):
        resp = _create(editor_client, title="!!!")
        assert resp.json()["data"]["slug"].startswith("article-")

    def test_update_keeps_own_slug(self, editor_client):
        article = _create(editor_client).json()["data"]
        resp = editor_client.put(
            f"/api/admin/article/{article['id']}",
            json=_article(slug="managing-hazel-coppice", content="Revised."),
        )
        assert resp.json()["data"]["slug"] == "managing-hazel-coppice"


class TestPublishing:
    def test_new_articles_are_drafts(self, editor_client):
        data = _create(editor_client).json()["data"]
        assert data["status"] == "draft"
        assert data["publishedAt"] is None
        assert data["viewCount"] == 0

    def test_publishing_stamps_published_at_once(self, editor_client):
        article = _create(editor_client).json()["data"]
        url = f"/api/admin/article/{article['id']}"

        first = editor_client.put(url, json=_article(status="published")).json()
        again = editor_client.put(url, json=_article(status="published")).json()

        assert first["data"]["publishedAt"] is not None
        assert again["data"]["publishedAt"] == first["data"]["publishedAt"]

    def test_tags_are_trimmed_and_deduplicated(self, editor_client):
        resp = _create(editor_client, tags=[" hazel", "hazel", "", "bats "])
        assert resp.json()["data"]["tags"] == ["hazel", "bats"]

    def test_unknown_status_is_422(self, editor_client):
        assert _create(editor_client, status="deleted").status_code == 422

    def test_status_filter(self, editor_client):
        _create(editor_client)
        _create(editor_client, title="Live", status="published")

        resp = editor_client.get("/api/admin/article", params={"status": "published"})

        titles = [a["title"] for a in resp.json()["data"]["articles"]]
        assert titles == ["Live"]


class TestInlineImages:
    def test_upload_returns_public_url(self, editor_client, make_image):
        resp = editor_client.post(
            "/api/admin/article/upload",
            files={"image": ("photo.png", make_image(size=(3000, 3000)), "image/png")},
        )

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["url"] == f"/uploads/articles/{data['filename']}"
        with Image.open(ARTICLE_DIR / data["filename"]) as img:
            assert img.size == (1080, 1080)

    def test_uploaded_image_is_served_statically(self, editor_client, png_bytes):
        data = editor_client.post(
            "/api/admin/article/upload",
            files={"image": ("p.png", png_bytes, "image/png")},
        ).json()["data"]

        resp = editor_client.get(data["url"])

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/jpeg"

    def test_upload_rejects_non_image(self, editor_client):
        resp = editor_client.post(
            "/api/admin/article/upload",
            files={"image": ("a.pdf", b"%PDF", "application/pdf")},
        )
        assert resp.status_code == 400
        assert resp.json()["message"].startswith("Unsupported file type")

    def test_delete_uploaded_image(self, editor_client, png_bytes):
        data = editor_client.post(
            "/api/admin/article/upload",
            files={"image": ("p.png", png_bytes, "image/png")},
        ).json()["data"]

        first = editor_client.delete(
            "/api/admin/article/upload", params={"url": data["url"]}
        )
        second = editor_client.delete(
            "/api/admin/article/upload", params={"url": data["url"]}
        )

        assert first.status_code == 200
        assert not (ARTICLE_DIR / data["filename"]).exists()
        assert second.status_code == 404

    def test_delete_refuses_foreign_urls(self, editor_client):
        for url in ("/uploads/news/x.pdf", "/uploads/articles/../../secret"):
            resp = editor_client.delete(
                "/api/admin/article/upload", params={"url": url}
            )
            assert resp.status_code == 400


class TestOwnership:
    def test_editor_cannot_edit_another_authors_article(
        self, client, editor, make_user, login
    ):
        make_user("other@example.org", UserRole.EDITOR)
        login("other@example.org")
        article_id = _create(client).json()["data"]["id"]
        client.post("/api/auth/logout")

        login("editor@example.org")

        assert client.get(f"/api/admin/article/{article_id}").status_code == 403
        resp = client.put(f"/api/admin/article/{article_id}", json=_article())
        assert resp.status_code == 403
        assert client.get("/api/admin/article").json()["data"]["articles"] == []

    def test_moderator_can_delete_any_article(self, client, editor, make_user, login):
        login("editor@example.org")
        article_id = _create(client).json()["data"]["id"]
        client.post("/api/auth/logout")

        make_user("mod@example.org", UserRole.MODERATOR)
        login("mod@example.org")

        assert client.delete(f"/api/admin/article/{article_id}").status_code == 200
        assert client.get(f"/api/admin/article/{article_id}").status_code == 404
