import logging
import smtplib

import pytest

from config import MailSettings
from utils import email_service
from utils.email_service import StatusNotifier, build_status_message

SNAPSHOT = {
    "id": "c0ffee",
    "email": "citizen@example.com",
    "status": "In Progress",
    "description": "Leaking hydrant",
}


def _mail(**overrides):
    values = {
        "server": "smtp.example.com",
        "port": 587,
        "username": "bot@example.com",
        "password": "secret",
        "use_tls": True,
        "use_ssl": False,
        "sender": "bot@example.com",
    }
    values.update(overrides)
    return MailSettings(**values)


class FakeSMTP:
    sent = []

    def __init__(self, host, port):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        pass

    def starttls(self, context=None):
        pass

    def login(self, username, password):
        pass

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


class RefusingSMTP(FakeSMTP):
    def send_message(self, msg):
        raise smtplib.SMTPRecipientsRefused({msg["To"]: (550, b"no such user")})


@pytest.fixture(autouse=True)
def _reset_outbox():
    FakeSMTP.sent = []


def test_message_contents():
    msg = build_status_message(SNAPSHOT, "bot@example.com")
    assert msg["Subject"] == "Complaint c0ffee status: In Progress"
    assert msg["To"] == "citizen@example.com"
    assert "Leaking hydrant" in msg.get_content()


def test_disabled_without_mail_server():
    notifier = StatusNotifier(_mail(server=""), logging.getLogger("test.notifier"))
    assert notifier.notify_status_change(SNAPSHOT) is None


def test_skipped_without_recipient():
    notifier = StatusNotifier(_mail(), logging.getLogger("test.notifier"))
    assert notifier.notify_status_change({**SNAPSHOT, "email": None}) is None


def test_sends_on_background_thread(monkeypatch):
    monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)
    notifier = StatusNotifier(_mail(), logging.getLogger("test.notifier"))

    worker = notifier.notify_status_change(SNAPSHOT)
    assert worker is not None and worker.daemon
    worker.join(timeout=5)

    assert len(FakeSMTP.sent) == 1
    assert FakeSMTP.sent[0]["To"] == "citizen@example.com"


def test_delivery_failure_is_logged_not_raised(monkeypatch, caplog):
    monkeypatch.setattr(email_service.smtplib, "SMTP", RefusingSMTP)
    notifier = StatusNotifier(_mail(), logging.getLogger("test.notifier"))

    with caplog.at_level(logging.WARNING, logger="test.notifier"):
        worker = notifier.notify_status_change(SNAPSHOT)
        worker.join(timeout=5)

    assert "Status email dispatch failed" in caplog.text
