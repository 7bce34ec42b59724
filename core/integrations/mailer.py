"""
Outbound email delivery.

Builds a plain-text UTF-8 message and either hands it to an SMTP server
or, in dev mode, writes it to the log instead.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from email.message import EmailMessage
import asyncio
import logging
import smtplib

from patterns.domain_config import SMTPConfig

logger = logging.getLogger(__name__)


@dataclass
class OutboundEmail:
    """Transport-neutral email request."""
    subject: str
    to: list[str]
    from_addr: str
    body: str
    cc: str = ""
    reply_to: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    def to_message(self) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = self.subject
        msg["To"] = ", ".join(self.to)
        msg["From"] = self.from_addr
        if self.reply_to:
            msg["Reply-To"] = self.reply_to
        if self.cc:
            msg["Cc"] = self.cc
        for name, value in self.headers.items():
            msg[name] = value
        msg.set_content(self.body, subtype="plain", charset="utf-8")
        return msg


class Mailer:
    """SMTP sender configured once at startup."""

    def __init__(self, config: SMTPConfig, timeout: float = 30.0):
        self.config = config
        self.timeout = timeout
        if config.dev_mode:
            logger.info("Using dev mode for SMTP; all messages will be logged instead of delivered")

    def send(self, email: OutboundEmail) -> None:
        """Deliver *email*; smtplib errors propagate to the caller."""
        msg = email.to_message()
        if self.config.dev_mode:
            logger.info("Email is in dev mode. Logging message instead of sending")
            logger.info("==================================================\n%s", msg.as_string())
            return

        logger.info("Sending %s email to %s", email.subject, ",".join(email.to))
        with smtplib.SMTP(self.config.host, self.config.port, timeout=self.timeout) as smtp:
            if self.config.password:
                smtp.starttls()
                smtp.login(self.config.user, self.config.password)
            else:
                logger.info("Sending email with no auth")
            smtp.send_message(msg)

    async def send_async(self, email: OutboundEmail) -> None:
        await asyncio.to_thread(self.send, email)
