"""SMTP-backed email dispatcher for complaint status notifications."""
import logging
import smtplib
import ssl
import threading
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from typing import Dict

from config import MailSettings
from utils.errors import NotificationError


def build_status_message(snapshot: Dict, sender: str) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = f"Complaint {snapshot['id']} status: {snapshot['status']}"
    msg["From"] = sender
    msg["To"] = snapshot["email"]
    msg["Reply-To"] = sender
    msg["Date"] = formatdate(localtime=True)
    msg["Message-ID"] = make_msgid()
    msg.set_content(
        f"Your complaint status has been updated to: {snapshot['status']}\n\n"
        f"Description: {snapshot['description']}\n"
    )
    return msg


def _dispatch_email(msg: EmailMessage, mail: MailSettings) -> None:
    if not mail.server:
        raise NotificationError("MAIL_SERVER is not configured")

    try:
        if mail.use_ssl:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(mail.server, mail.port, context=context) as server:
                if mail.username and mail.password:
                    server.login(mail.username, mail.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(mail.server, mail.port) as server:
                server.ehlo()
                if mail.use_tls:
                    server.starttls(context=ssl.create_default_context())
                if mail.username and mail.password:
                    server.login(mail.username, mail.password)
                server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        raise NotificationError(str(exc)) from exc


class StatusNotifier:
    """Fire-and-forget email on complaint status change.

    Delivery runs on a daemon thread. The caller gets the thread back (or None when
    nothing was sent) but is never expected to join it; failures end up in the log.
    """

    def __init__(self, mail: MailSettings, logger: logging.Logger):
        self.mail = mail
        self.logger = logger

    def notify_status_change(self, snapshot: Dict) -> threading.Thread | None:
        if not snapshot.get("email") or not self.mail.enabled:
            return None
        worker = threading.Thread(
            target=self._deliver,
            args=(dict(snapshot),),
            name=f"status-email-{snapshot['id']}",
            daemon=True,
        )
        worker.start()
        return worker

    def _deliver(self, snapshot: Dict) -> None:
        try:
            _dispatch_email(build_status_message(snapshot, self.mail.sender), self.mail)
        except NotificationError as exc:
            self.logger.warning(
                "Status email dispatch failed",
                extra={"complaint_id": snapshot["id"], "error": str(exc)},
            )
            return
        except Exception:
            self.logger.exception("Unexpected error while sending status email")
            return
        self.logger.info("Status email sent", extra={"complaint_id": snapshot["id"]})
