"""Outcome notification: the run log goes to people or a chat hook."""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from typing import Protocol

from catalog_export.common.http import HttpClient, HttpRequestError


class Notifier(Protocol):
    def notify(self, subject: str, body: str) -> bool: ...


class NullNotifier:
    def notify(self, subject: str, body: str) -> bool:
        return False


class MailNotifier:
    def __init__(self, *, recipients: list[str], sender: str, smtp_host: str = "localhost", smtp_port: int = 25) -> None:
        self.recipients = recipients
        self.sender = sender
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port

    def build_message(self, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = ", ".join(self.recipients)
        message.set_content(body)
        return message

    def notify(self, subject: str, body: str) -> bool:
        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as smtp:
                smtp.send_message(self.build_message(subject, body))
        except (smtplib.SMTPException, OSError):
            return False
        return True


class WebhookNotifier:
    def __init__(self, url: str, client: HttpClient | None = None) -> None:
        self.url = url
        self.client = client

    def notify(self, subject: str, body: str) -> bool:
        client = self.client or HttpClient()
        try:
            client.post_json(self.url, payload={"subject": subject, "text": body})
        except HttpRequestError:
            return False
        finally:
            if self.client is None:
                client.close()
        return True


def build_notifier(notification_cfg: dict) -> Notifier:
    method = notification_cfg.get("method", "none")
    if method == "mail":
        return MailNotifier(
            recipients=list(notification_cfg["recipients"]),
            sender=notification_cfg.get("sender") or "catalog-export@localhost",
            smtp_host=notification_cfg.get("smtp_host") or "localhost",
            smtp_port=int(notification_cfg.get("smtp_port") or 25),
        )
    if method == "webhook":
        return WebhookNotifier(notification_cfg["webhook_url"])
    return NullNotifier()
