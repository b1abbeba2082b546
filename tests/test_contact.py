"""Tests for the contact form mailer."""
from __future__ import annotations

import smtplib
from email import message_from_string

import pytest

from saavi_site.config import settings
from saavi_site.services import email_service


class FakeSMTP:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []
        self.closed = False

    def sendmail(self, sender, recipients, body):
        if self.fail:
            raise smtplib.SMTPRecipientsRefused({recipients[0]: (550, b"rejected")})
        self.sent.append((sender, recipients, body))

    def quit(self):
        self.closed = True


@pytest.fixture
def fake_smtp(monkeypatch):
    server = FakeSMTP()
    monkeypatch.setattr(email_service, "_create_smtp", lambda: server)
    return server


def _html_part(raw: str) -> str:
    parsed = message_from_string(raw)
    for part in parsed.walk():
        if part.get_content_type() == "text/html":
            return part.get_payload(decode=True).decode()
    raise AssertionError("no html part")


def test_contact_sends_notification(client, fake_smtp):
    response = client.post(
        "/api/contact",
        json={"name": "Ravi <b>", "phone": "98765 43210", "message": "Need 4 cameras\nfor a shop"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Message sent successfully!"}
    assert fake_smtp.closed

    sender, recipients, raw = fake_smtp.sent[0]
    assert sender == "site@example.com"
    assert recipients == ["owner@example.com"]

    parsed = message_from_string(raw)
    assert parsed["Subject"] == "New Contact Enquiry from Ravi <b>"
    html = _html_part(raw)
    assert "Ravi &lt;b&gt;" in html
    assert "Need 4 cameras<br>for a shop" in html


@pytest.mark.parametrize("payload", [
    {"phone": "123", "message": "hi"},
    {"name": "Ravi", "message": "hi"},
    {"name": "Ravi", "phone": "123"},
    {"name": "  ", "phone": "123", "message": "hi"},
    {},
])
def test_contact_missing_field_sends_nothing(client, fake_smtp, payload):
    response = client.post("/api/contact", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == "All fields are required."
    assert fake_smtp.sent == []


def test_contact_relay_failure_is_server_error(client, monkeypatch):
    server = FakeSMTP(fail=True)
    monkeypatch.setattr(email_service, "_create_smtp", lambda: server)

    response = client.post("/api/contact", json={"name": "Ravi", "phone": "123", "message": "hi"})

    assert response.status_code == 500
    assert "Failed to send message" in response.json()["error"]
    assert server.closed


def test_contact_without_mail_configuration_is_server_error(client, fake_smtp, monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_PASS", "")

    response = client.post("/api/contact", json={"name": "Ravi", "phone": "123", "message": "hi"})

    assert response.status_code == 500
    assert fake_smtp.sent == []


def test_recipient_defaults_to_sender(monkeypatch):
    monkeypatch.setattr(settings, "CONTACT_RECIPIENT", "")

    msg = email_service.build_contact_message("Asha", "123", "hello")

    assert msg["To"] == "site@example.com"
