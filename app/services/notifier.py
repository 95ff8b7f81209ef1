"""
Outbound notifications for new contact tickets.

Delivery is best effort: notify_safely() logs and swallows any failure so a
ticket is created regardless of the notification outcome.
"""
import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage

from app import config, models

logger = logging.getLogger("feedindia.notifier")


class BaseNotifier(ABC):
    @abstractmethod
    def send(self, to: str, subject: str, body: str) -> None:
        pass


class LogNotifier(BaseNotifier):
    """Used when no SMTP host is configured."""

    def send(self, to: str, subject: str, body: str) -> None:
        logger.info("Notification to %s: %s", to, subject)


class SmtpNotifier(BaseNotifier):
    def __init__(self, host: str, port: int = 25, sender: str = config.SMTP_FROM, timeout: float = 10):
        self.host = host
        self.port = port
        self.sender = sender
        self.timeout = timeout

    def send(self, to: str, subject: str, body: str) -> None:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.send_message(msg)


def get_notifier() -> BaseNotifier:
    if config.SMTP_HOST:
        return SmtpNotifier(config.SMTP_HOST, config.SMTP_PORT)
    return LogNotifier()


def ticket_notification(contact: models.Contact):
    subject = f"[{contact.ticket_id}] New {contact.subject} inquiry ({contact.priority} priority)"
    body = (
        f"Ticket: {contact.ticket_id}\n"
        f"From: {contact.name} <{contact.email}>\n"
        f"Subject: {contact.subject}\n"
        f"Priority: {contact.priority}\n\n"
        f"{contact.message}\n"
    )
    return subject, body


def notify_safely(notifier: BaseNotifier, to: str, subject: str, body: str) -> bool:
    try:
        notifier.send(to, subject, body)
        return True
    except Exception:
        logger.warning("Notification to %s failed (%s)", to, subject, exc_info=True)
        return False
