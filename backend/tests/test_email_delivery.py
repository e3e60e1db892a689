import smtplib
from types import SimpleNamespace

import httpx
import pytest

from academy.services import email as email_service
from academy.services import notifications as notification_service
from academy.services import whatsapp as whatsapp_service


def _settings(**overrides):
    values = {
        "smtp_host": "smtp.academy.test",
        "smtp_port": 587,
        "smtp_username": "mailer",
        "smtp_password": "secret",
        "smtp_from_email": "office@academy.test",
        "smtp_from_name": "Academy Admin",
        "smtp_use_tls": True,
        "smtp_use_ssl": False,
        "smtp_retry_attempts": 2,
        "smtp_retry_backoff_seconds": 0.0,
        "smtp_timeout_seconds": 5,
        "whatsapp_api_url": "https://wa.academy.test/messages",
        "whatsapp_api_token": "wa-token",
        "whatsapp_timeout_seconds": 5.0,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class FakeSMTP:
    sent = []
    failures = 0

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def starttls(self, context=None):
        return None

    def login(self, username, password):
        return None

    def send_message(self, message):
        if FakeSMTP.failures:
            FakeSMTP.failures -= 1
            raise smtplib.SMTPServerDisconnected("connection dropped")
        FakeSMTP.sent.append(message)
        return {}


@pytest.fixture(autouse=True)
def fake_smtp(monkeypatch):
    FakeSMTP.sent = []
    FakeSMTP.failures = 0
    monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(email_service.smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


def test_send_email_builds_message(monkeypatch):
    monkeypatch.setattr(email_service, "get_settings", lambda: _settings())

    email_service.send_email(
        to_email="anu@example.com",
        subject="Recital rehearsal",
        text_content="See you on Saturday.",
    )

    assert len(FakeSMTP.sent) == 1
    message = FakeSMTP.sent[0]
    assert message["To"] == "anu@example.com"
    assert message["From"] == "Academy Admin <office@academy.test>"
    assert message["Subject"] == "Recital rehearsal"


def test_send_email_requires_configuration(monkeypatch):
    monkeypatch.setattr(email_service, "get_settings", lambda: _settings(smtp_host=None))

    with pytest.raises(email_service.EmailDeliveryError, match="not configured"):
        email_service.send_email(to_email="anu@example.com", subject="Hi", text_content="Hi")


def test_send_email_retries_dropped_connection(monkeypatch):
    monkeypatch.setattr(email_service, "get_settings", lambda: _settings(smtp_retry_attempts=2))
    FakeSMTP.failures = 1

    email_service.send_email(to_email="anu@example.com", subject="Hi", text_content="Hi")

    assert len(FakeSMTP.sent) == 1


def test_send_email_gives_up_after_last_attempt(monkeypatch):
    monkeypatch.setattr(email_service, "get_settings", lambda: _settings(smtp_retry_attempts=2))
    FakeSMTP.failures = 5

    with pytest.raises(email_service.EmailDeliveryError, match="connection failed"):
        email_service.send_email(to_email="anu@example.com", subject="Hi", text_content="Hi")
    assert FakeSMTP.sent == []


def test_render_letter_defaults_the_greeting():
    letter = email_service.render_letter(name=None, message="Classes resume Monday.", signature="The Academy Team")
    assert letter.startswith("Dear Student,\n\nClasses resume Monday.")
    assert letter.endswith("Best regards,\nThe Academy Team")


def test_email_recipient_reports_failure_without_raising(monkeypatch):
    monkeypatch.setattr(email_service, "get_settings", lambda: _settings(smtp_host=None))
    recipient = SimpleNamespace(email="anu@example.com", name="Anu")

    assert notification_service.email_recipient(recipient, subject="Hi", message="Hello") is False

    monkeypatch.setattr(email_service, "get_settings", lambda: _settings())
    assert notification_service.email_recipient(recipient, subject="Hi", message="Hello") is True
    assert "Dear Anu," in FakeSMTP.sent[0].get_content()


def test_whatsapp_posts_normalized_number(monkeypatch):
    monkeypatch.setattr(whatsapp_service, "get_settings", lambda: _settings())
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append((url, json, headers))
        return httpx.Response(200, request=httpx.Request("POST", url))

    monkeypatch.setattr(whatsapp_service.httpx, "post", fake_post)

    whatsapp_service.send_whatsapp_message(to_number="+91 98765-43210", text="Class moved")

    url, body, headers = calls[0]
    assert url == "https://wa.academy.test/messages"
    assert body == {"to": "919876543210", "type": "text", "text": {"body": "Class moved"}}
    assert headers["Authorization"] == "Bearer wa-token"


def test_whatsapp_bulk_counts_successes_only(monkeypatch):
    monkeypatch.setattr(whatsapp_service, "get_settings", lambda: _settings())

    def fake_post(url, json=None, headers=None, timeout=None):
        status_code = 500 if json["to"] == "111" else 200
        return httpx.Response(status_code, request=httpx.Request("POST", url))

    monkeypatch.setattr(whatsapp_service.httpx, "post", fake_post)

    sent = whatsapp_service.send_whatsapp_bulk([("u1", "111"), ("u2", "222"), ("u3", None)], "Hello")
    assert sent == 1


def test_whatsapp_requires_gateway(monkeypatch):
    monkeypatch.setattr(whatsapp_service, "get_settings", lambda: _settings(whatsapp_api_url=None))

    with pytest.raises(whatsapp_service.WhatsAppDeliveryError):
        whatsapp_service.send_whatsapp_message(to_number="222", text="Hello")
