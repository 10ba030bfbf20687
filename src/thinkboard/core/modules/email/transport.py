"""Outbound email transports for reminder notifications."""

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Protocol

import structlog

from thinkboard.config import Config
from thinkboard.errors import TransportError

logger = structlog.get_logger(__name__)


class EmailTransport(Protocol):
    async def send(self, to_address: str, subject: str, body: str) -> None:
        """Hand a message to the mail system.

        Raises:
            TransportError: If the message could not be handed off
        """
        ...


class SmtpEmailTransport:
    """Sends HTML mail through an SMTP relay, in a worker thread."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _build_message(self, to_address: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to_address
        message["Subject"] = subject
        message.set_content("This reminder requires an HTML capable mail client.")
        message.add_alternative(body, subtype="html")
        return message

    def _send_sync(self, message: EmailMessage) -> None:
        # Port 465 is implicit TLS, anything else upgrades with STARTTLS when enabled
        if self.port == 465:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as client:
                if self.username:
                    client.login(self.username, self.password)
                client.send_message(message)
            return

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as client:
            if self.use_tls:
                client.starttls()
            if self.username:
                client.login(self.username, self.password)
            client.send_message(message)

    async def send(self, to_address: str, subject: str, body: str) -> None:
        message = self._build_message(to_address, subject, body)
        try:
            await asyncio.to_thread(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as e:
            raise TransportError(f"SMTP delivery to {to_address} failed: {e}") from e
        logger.debug("email_sent", to=to_address, subject=subject)


class LogEmailTransport:
    """Explicitly configured no-op transport: messages are logged and count as delivered."""

    async def send(self, to_address: str, subject: str, body: str) -> None:
        logger.info("email_logged", to=to_address, subject=subject, body_length=len(body))


def build_email_transport(config: Config) -> EmailTransport | None:
    """Create the configured transport, or None when email delivery is disabled."""
    if config.email_backend == "log":
        return LogEmailTransport()
    if config.email_backend == "smtp":
        if not config.smtp_host:
            logger.warning("smtp_host_missing", email_backend=config.email_backend)
            return None
        return SmtpEmailTransport(
            host=config.smtp_host,
            port=config.smtp_port,
            sender=config.email_from,
            username=config.smtp_username,
            password=config.smtp_password,
            use_tls=config.smtp_use_tls,
            timeout=config.smtp_timeout,
        )
    return None
