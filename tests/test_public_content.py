"""Public read endpoints: visibility rules, downloads and article taxonomy."""

from __future__ import annotations

import datetime as dt
import json

import pytest

from woodland.models.article import Article
from woodland.models.location import Location
from woodland.models.news import News
from woodland.models.record import Record


def _news(db, title="Notice", **fields) -> News:
    values = {
        "title": title,
        "content": "Body",
        "date": dt.date(2026, 3, 1),
        "categories": ["general"],
        "author": "Office",
        "attachments": [],
        "download_stats": {},
        "status": "published",
        "is_member_only": False,
    }
    values.update(fields)
    news = News(**values)
    db.add(news)
    db.commit()
    return news


def _article(db, title, slug, **fields) -> Article:
    values = {
        "title": title,
        "slug": slug,
        "content": "Body",
        "images": [],
        "attachments": [],
        "tags": [],
        "status": "published",
        "published_at": dt.datetime(2026, 3, 1, tzinfo=dt.UTC),
        "is_member_only": False,
        "view_count": 0,
        "download_stats": {},
    }
    values.update(fields)
    article = Article(**values)
    db.add(article)
    db.commit()
    return article


def _location(db, location_id, **fields) -> Location:
    values = {
        "id": location_id,
        "name": location_id.title(),
        "position": [51.5, -0.1],
        "type": "regular",
        "has_detail": False,
        "is_draft": False,
        "images": [],
        "attachments": [],
        "upcoming_dates": [],
        "download_stats": {},
    }
    values.update(fields)
    location = Location(**values)
    db.add(location)
    db.commit()
    return location


class TestNews:
    def test_list_hides_drafts_and_member_only_from_anonymous(self, client, db_session):
        _news(db_session, "Public", date=dt.date(2026, 3, 2))
        _news(db_session, "Draft", status="draft")
        _news(db_session, "Members", is_member_only=True)

        data = client.get("/api/news").json()["data"]

        assert [n["title"] for n in data["news"]] == ["Public"]
        assert data["pagination"]["totalCount"] == 1

    def test_logged_in_users_see_member_only(self, editor_client, db_session):
        _news(db_session, "Public", date=dt.date(2026, 3, 2))
        _news(db_session, "Members", is_member_only=True)

        news = editor_client.get("/api/news").json()["data"]["news"]

        assert [n["title"] for n in news] == ["Public", "Members"]

    def test_member_only_detail_needs_session(self, client, db_session):
        news = _news(db_session, is_member_only=True)
        resp = client.get(f"/api/news/{news.id}")
        assert resp.status_code == 401
        assert resp.json()["message"] == "Members only"

    def test_draft_detail_is_404(self, client, db_session):
        news = _news(db_session, status="draft")
        assert client.get(f"/api/news/{news.id}").status_code == 404

    def test_filters_and_paging(self, client, db_session):
        for day in range(1, 6):
            _news(
                db_session,
                f"Item {day}",
                date=dt.date(2026, 3, day),
                categories=["events"] if day % 2 else ["general"],
                priority="high" if day == 5 else None,
            )

        events = client.get("/api/news", params={"category": "events"}).json()
        urgent = client.get("/api/news", params={"priority": "high"}).json()
        page2 = client.get("/api/news", params={"page": 2, "limit": 2}).json()

        assert [n["title"] for n in events["data"]["news"]] == [
            "Item 5",
            "Item 3",
            "Item 1",
        ]
        assert [n["title"] for n in urgent["data"]["news"]] == ["Item 5"]
        assert [n["title"] for n in page2["data"]["news"]] == ["Item 3", "Item 2"]
        assert page2["data"]["pagination"] == {
            "currentPage": 2,
            "itemsPerPage": 2,
            "totalCount": 5,
            "totalPages": 3,
        }


class TestNewsDownloads:
    def _published_with_file(self, editor_client, member_only=False) -> dict:
        body = {
            "title": "AGM minutes",
            "content": "Minutes attached.",
            "date": "2026-03-01",
            "categories": ["general"],
            "author": "Secretary",
            "isMemberOnly": member_only,
        }
        news = editor_client.post(
            "/api/admin/news",
            data={"data": json.dumps(body)},
            files=[("files", ("議事録 2026.txt", b"minutes", "text/plain"))],
        ).json()["data"]
        editor_client.post("/api/auth/logout")
        return news

    def test_download_counts_and_names_file(self, client, editor_client, db_session):
        news = self._published_with_file(editor_client)
        stored = news["attachments"][0]["filename"]
        url = f"/api/news/download/{news['id']}/{stored}"

        first = client.get(url)
        client.get(url)

        assert first.status_code == 200
        assert first.content == b"minutes"
        disposition = first.headers["Content-Disposition"]
        assert disposition.startswith("attachment;")
        assert "filename*=UTF-8''%E8%AD%B0" in disposition
        row = db_session.get(News, news["id"])
        db_session.refresh(row)
        assert row.download_stats[stored]["count"] == 2

    def test_member_only_download_needs_session(self, client, editor_client):
        news = self._published_with_file(editor_client, member_only=True)
        stored = news["attachments"][0]["filename"]

        resp = client.get(f"/api/news/download/{news['id']}/{stored}")

        assert resp.status_code == 401

    def test_unknown_attachment_is_404(self, client, editor_client):
        news = self._published_with_file(editor_client)
        resp = client.get(f"/api/news/download/{news['id']}/missing.txt")
        assert resp.status_code == 404

    def test_attachments_are_not_served_statically(self, client, editor_client):
        news = self._published_with_file(editor_client)
        stored = news["attachments"][0]["filename"]
        assert client.get(f"/uploads/news/{stored}").status_code == 404


class TestRecords:
    def test_drafts_are_hidden(self, client, db_session):
        common = {
            "location": "Meadow",
            "datetime": "Sat",
            "weather": "Fine",
            "participants": "3",
            "reporter": "A",
            "content": "Work",
            "categories": ["survey"],
            "images": [],
        }
        live = Record(event_date=dt.date(2026, 3, 1), is_draft=False, **common)
        draft = Record(event_date=dt.date(2026, 3, 2), is_draft=True, **common)
        db_session.add_all([live, draft])
        db_session.commit()

        records = client.get("/api/record").json()["data"]["records"]

        assert [r["id"] for r in records] == [live.id]
        assert client.get(f"/api/record/{draft.id}").status_code == 404
        assert client.get(f"/api/record/{live.id}").json()["data"]["reporter"] == "A"
        other = client.get("/api/record", params={"category": "other"}).json()
        assert other["data"]["records"] == []


class TestLocations:
    def test_list_filters_type_and_hides_drafts(self, client, db_session):
        _location(db_session, "north-wood")
        _location(db_session, "river-path", type="collaboration")
        _location(db_session, "secret-glade", is_draft=True)

        everything = client.get("/api/location").json()["data"]
        regular = client.get("/api/location", params={"type": "regular"}).json()

        assert {loc["id"] for loc in everything} == {"north-wood", "river-path"}
        assert [loc["id"] for loc in regular["data"]] == ["north-wood"]
        assert client.get("/api/location/secret-glade").status_code == 404

    def test_unknown_type_is_422(self, client):
        assert client.get("/api/location", params={"type": "party"}).status_code == 422

    def test_attachment_download_counts(self, client, editor_client, db_session):
        created = editor_client.post(
            "/api/admin/location",
            data={
                "data": json.dumps(
                    {
                        "id": "north-wood",
                        "name": "North Wood",
                        "position": [51.5, -0.1],
                        "type": "regular",
                    }
                )
            },
            files=[("attachments", ("Route.txt", b"turn left", "text/plain"))],
        ).json()["data"]["location"]
        stored = created["attachments"][0]["filename"]

        resp = client.get(f"/api/location/download/north-wood/{stored}")

        assert resp.status_code == 200
        assert 'filename="Route.txt"' in resp.headers["Content-Disposition"]
        row = db_session.get(Location, "north-wood")
        db_session.refresh(row)
        assert row.download_stats[stored]["count"] == 1


class TestArticles:
    def test_slug_lookup_counts_views(self, client, db_session):
        article = _article(db_session, "Bats", "bats")

        client.get("/api/article/slug/bats")
        resp = client.get("/api/article/slug/bats")

        assert resp.json()["data"]["title"] == "Bats"
        db_session.refresh(article)
        assert article.view_count == 2

    def test_id_lookup_does_not_count_views(self, client, db_session):
        article = _article(db_session, "Bats", "bats")
        client.get(f"/api/article/{article.id}")
        db_session.refresh(article)
        assert article.view_count == 0

    @pytest.mark.parametrize("status", ["draft", "archived"])
    def test_unpublished_articles_are_404(self, client, db_session, status):
        _article(db_session, "Hidden", "hidden", status=status)
        assert client.get("/api/article/slug/hidden").status_code == 404

    def test_member_only_article(self, client, db_session):
        _article(db_session, "Members", "members", is_member_only=True)
        assert client.get("/api/article/slug/members").status_code == 401
        assert client.get("/api/article").json()["data"]["articles"] == []

    def test_list_filters(self, client, db_session):
        _article(
            db_session, "Hazel coppice", "hazel", category="guides", tags=["hazel"]
        )
        _article(db_session, "Bat boxes", "bats", category="news", tags=["bats"])

        by_category = client.get("/api/article", params={"category": "guides"})
        by_tag = client.get("/api/article", params={"tag": "bats"})
        by_search = client.get("/api/article", params={"search": "coppice"})

        assert [a["slug"] for a in by_category.json()["data"]["articles"]] == ["hazel"]
        assert [a["slug"] for a in by_tag.json()["data"]["articles"]] == ["bats"]
        assert [a["slug"] for a in by_search.json()["data"]["articles"]] == ["hazel"]

    def test_categories_and_tag_counts(self, client, db_session):
        _article(db_session, "A", "a", category="guides", tags=["hazel", "bats"])
        _article(db_session, "B", "b", category="news", tags=["bats"])
        _article(db_session, "C", "c", category="drafts", tags=["x"], status="draft")

        categories = client.get("/api/articles/categories").json()["data"]
        tags = client.get("/api/articles/tags").json()["data"]

        assert categories == ["guides", "news"]
        assert tags == [{"name": "bats", "count": 2}, {"name": "hazel", "count": 1}]
