"""Email notifications over authenticated SMTP."""

import logging
import smtplib
import socket
import ssl
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import formataddr, formatdate
from typing import Callable

from ipwatch.config import Config
from ipwatch.errors import NotifyError

logger = logging.getLogger(__name__)

__all__ = [
    "EmailNotifier",
    "NotifyError",
    "SMTPS_PORT",
]

# Port that speaks TLS from the first byte; every other port upgrades with STARTTLS
SMTPS_PORT = 465

SENDER_NAME = "IP Change Notifier"

SmtpFactory = Callable[[str, int, float], smtplib.SMTP]


def _default_smtp_factory(host: str, port: int, timeout: float) -> smtplib.SMTP:
    if port == SMTPS_PORT:
        return smtplib.SMTP_SSL(
            host, port, timeout=timeout, context=ssl.create_default_context()
        )
    return smtplib.SMTP(host, port, timeout=timeout)


class EmailNotifier:
    """Sends IP change, failure and test emails.

    Each call opens its own SMTP connection using the settings of the Config
    passed in, so edits to the config file apply on the next message.
    """

    def __init__(
        self,
        smtp_factory: SmtpFactory | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize notifier.

        Args:
            smtp_factory: Returns a connected SMTP client for
                (host, port, timeout). Injectable for testing.
            timeout: Socket timeout in seconds.
        """
        self._smtp_factory = smtp_factory or _default_smtp_factory
        self.timeout = timeout

    def notify(self, config: Config, new_ip: str) -> None:
        """Tell the recipient that the public IP changed.

        Args:
            config: Config holding the SMTP settings and the previous IP.
            new_ip: Newly detected public IP.

        Raises:
            NotifyError: If the message could not be sent.
        """
        previous = config.ip_address or "unknown"
        body = (
            f"The public IP address of {socket.gethostname()} changed.\n"
            f"\n"
            f"Old: {previous}\n"
            f"New: {new_ip}\n"
            f"\n"
            f"Detected at {_now()}.\n"
        )
        self._send(config, "Your IP Changed!", body)

    def notify_failures(self, config: Config, failures: int) -> None:
        """Tell the recipient that IP lookups keep failing.

        Raises:
            NotifyError: If the message could not be sent.
        """
        body = (
            f"ipwatch on {socket.gethostname()} failed to look up the public IP "
            f"address {failures} times in a row.\n"
            f"\n"
            f"Last known IP: {config.ip_address or 'unknown'}\n"
            f"Detected at {_now()}.\n"
        )
        self._send(config, "IP check failing", body)

    def send_test(self, config: Config) -> None:
        """Send a test message with the current settings.

        Raises:
            NotifyError: If the message could not be sent.
        """
        body = (
            f"This is a test message from ipwatch on {socket.gethostname()}.\n"
            f"\n"
            f"Last known IP: {config.ip_address or 'unknown'}\n"
        )
        self._send(config, "ipwatch test message", body)

    def build_message(self, config: Config, subject: str, body: str) -> EmailMessage:
        """Build a plain text message from the sender to the recipient."""
        msg = EmailMessage()
        msg["From"] = formataddr((SENDER_NAME, config.email_address))
        msg["To"] = config.recipient_address
        msg["Subject"] = subject
        msg["Date"] = formatdate(localtime=True)
        msg.set_content(body)
        return msg

    def _send(self, config: Config, subject: str, body: str) -> None:
        missing = [
            name
            for name, value in (
                ("emailAddress", config.email_address),
                ("emailSMTPHost", config.email_smtp_host),
                ("recipientAddress", config.recipient_address),
            )
            if not value
        ]
        if missing:
            raise NotifyError(f"Email not configured: missing {', '.join(missing)}")

        try:
            msg = self.build_message(config, subject, body)
        except ValueError as e:
            raise NotifyError(f"Invalid email settings: {e}") from e

        host, port = config.email_smtp_host, config.email_smtp_port

        try:
            with self._smtp_factory(host, port, self.timeout) as smtp:
                if port != SMTPS_PORT:
                    smtp.starttls(context=ssl.create_default_context())
                smtp.login(config.smtp_login, config.email_password)
                smtp.send_message(msg)
        # ValueError covers credentials smtplib cannot encode as ASCII
        except (smtplib.SMTPException, OSError, ValueError) as e:
            raise NotifyError(f"Failed to send email via {host}:{port}: {e}") from e

        logger.info(f"Sent '{subject}' to {config.recipient_address}")


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
