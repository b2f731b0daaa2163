#!/usr/bin/env python3
"""
SMTP delivery of compiled documents
"""

import asyncio
import logging
import re
import smtplib
from email.message import EmailMessage
from typing import Optional

from config import config
from utils.errors import DeliveryError
from utils.logging_config import TimedLogger

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def is_valid_email(email: str) -> bool:
    return bool(email and EMAIL_RE.match(email))


class Mailer:
    """Sends one PDF attachment per message through an SMTP relay"""

    def __init__(self, host: str, port: int, user: str, password: str, sender: str):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender

    @classmethod
    def from_config(cls) -> 'Mailer':
        if not config.is_mail_configured():
            raise DeliveryError(
                'Email is not configured. Set SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS, and MAIL_FROM.'
            )
        return cls(
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            user=config.SMTP_USER,
            password=config.SMTP_PASS,
            sender=config.MAIL_FROM,
        )

    def build_message(self, to: str, subject: str, text: str, filename: str, content: bytes) -> EmailMessage:
        message = EmailMessage()
        message['From'] = self.sender
        message['To'] = to
        message['Subject'] = subject
        message.set_content(text)
        message.add_attachment(content, maintype='application', subtype='pdf', filename=filename)
        return message

    def _open(self) -> smtplib.SMTP:
        # Port 465 speaks TLS from the first byte; others upgrade with STARTTLS
        if self.port == 465:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=30)
        server = smtplib.SMTP(self.host, self.port, timeout=30)
        server.starttls()
        return server

    def send(self, message: EmailMessage) -> None:
        try:
            with self._open() as server:
                server.login(self.user, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"Failed to send email to {message['To']}: {e}") from e

    async def send_document(
        self,
        to: str,
        subject: str,
        filename: str,
        content: bytes,
        text: Optional[str] = None,
    ) -> None:
        """Send without blocking the event loop"""
        message = self.build_message(to, subject, text or 'Articles attached.', filename, content)
        with TimedLogger(logger, f"email delivery to {to}"):
            await asyncio.to_thread(self.send, message)
