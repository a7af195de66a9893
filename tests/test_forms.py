"""Contact and membership forms."""

from __future__ import annotations

import smtplib
from unittest.mock import MagicMock

import pytest

from woodland.main import app
from woodland.schemas.contact import ContactForm, JoinForm
from woodland.services.mailer import get_mailer

CONTACT = {
    "name": "Ann Walker",
    "email": "ann@example.net",
    "memberType": "non-member",
    "subject": "Volunteering",
    "message": "I would like to join a work party next month.",
    "privacy": True,
}

JOIN = {
    "memberType": "regular",
    "name": "Ann Walker",
    "furigana": "アン ウォーカー",
    "email": "ann@example.net",
    "tel": "090-1234-5678",
    "address": "1 Oak Lane",
    "birthDate": "1990-04-01",
    "motivation": "I walk in these woods every week.",
    "privacy": True,
}


@pytest.fixture
def mailer():
    mock = MagicMock()
    app.dependency_overrides[get_mailer] = lambda: mock
    yield mock
    app.dependency_overrides.pop(get_mailer, None)


class TestContact:
    def test_contact_is_mailed(self, client, mailer):
        resp = client.post("/api/contact", json=CONTACT)

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        [form] = mailer.send_contact.call_args.args
        assert isinstance(form, ContactForm)
        assert form.subject == "Volunteering"

    def test_foreign_origin_is_refused(self, client, mailer):
        resp = client.post(
            "/api/contact", json=CONTACT, headers={"Origin": "https://evil.example"}
        )
        assert resp.status_code == 403
        mailer.send_contact.assert_not_called()

    def test_privacy_must_be_accepted(self, client, mailer):
        resp = client.post("/api/contact", json={**CONTACT, "privacy": False})
        assert resp.status_code == 422
        assert resp.json()["errors"]["privacy"] == (
            "You must agree to the privacy policy"
        )

    def test_short_message_is_rejected(self, client, mailer):
        resp = client.post("/api/contact", json={**CONTACT, "message": "hi"})
        assert resp.status_code == 422
        assert "message" in resp.json()["errors"]

    def test_mail_failure_is_502(self, client, mailer):
        mailer.send_contact.side_effect = smtplib.SMTPException("down")
        resp = client.post("/api/contact", json=CONTACT)
        assert resp.status_code == 502
        assert resp.json()["success"] is False

    def test_contact_is_rate_limited(self, client, mailer):
        statuses = [
            client.post("/api/contact", json=CONTACT).status_code for _ in range(6)
        ]
        assert statuses == [200] * 5 + [429]


class TestJoin:
    def test_application_is_mailed(self, client, csrf, mailer):
        csrf()
        resp = client.post("/api/email/join", json=JOIN)

        assert resp.status_code == 200
        [form] = mailer.send_join_application.call_args.args
        assert isinstance(form, JoinForm)
        assert form.birth_date == "1990-04-01"

    def test_requires_csrf_token(self, client, mailer):
        client.get("/api/auth/session")
        assert client.post("/api/email/join", json=JOIN).status_code == 403

    @pytest.mark.parametrize(
        ("field", "value"),
        [("furigana", "Ann Walker"), ("tel", "+44 20 7946"), ("memberType", "gold")],
    )
    def test_invalid_fields(self, client, csrf, mailer, field, value):
        csrf()
        resp = client.post("/api/email/join", json={**JOIN, field: value})
        assert resp.status_code == 422
        assert field in resp.json()["errors"]
