"""
Email service with provider abstraction.

Supports a development ``log`` provider (default), SMTP and the Resend API.
Provider is selected via configuration. Delivery is a single synchronous
attempt; failures raise ``DeliveryError``.
"""

from __future__ import annotations

import ssl
from abc import ABC, abstractmethod
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import structlog

from myescrow.config import get_settings
from myescrow.email.templates import verification_code_email
from myescrow.errors import DeliveryError

logger = structlog.get_logger()

DELIVERY_FAILED = "Failed to send verification email."


class BaseEmailProvider(ABC):
    """Abstract base class for email delivery providers."""

    name = "base"

    @abstractmethod
    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> None:
        """Send an email. Raises DeliveryError on failure."""
        ...


class LogProvider(BaseEmailProvider):
    """Development provider: writes the message to the log instead of sending it."""

    name = "log"

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> None:
        # Bodies carry verification codes; only debug builds log them.
        extra = {"body": text_body} if get_settings().debug else {}
        logger.warning("email_not_sent_externally", to=to_email, subject=subject, **extra)


class SMTPProvider(BaseEmailProvider):
    """Send emails via SMTP using aiosmtplib."""

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        from_name: str,
        use_tls: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address
        self.from_name = from_name
        self.use_tls = use_tls

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> None:
        """Send via SMTP."""
        import aiosmtplib

        msg = MIMEMultipart("alternative")
        msg["From"] = f"{self.from_name} <{self.from_address}>"
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            tls_context = ssl.create_default_context() if self.use_tls else None
            await aiosmtplib.send(
                msg,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=self.use_tls,
                tls_context=tls_context,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.exception("email_send_failed", to=to_email, provider=self.name)
            raise DeliveryError(DELIVERY_FAILED) from e
        logger.info("email_sent", to=to_email, subject=subject, provider=self.name)


class ResendProvider(BaseEmailProvider):
    """Send emails via Resend API."""

    name = "resend"

    def __init__(self, api_key: str, from_address: str, from_name: str) -> None:
        self.api_key = api_key
        self.from_address = from_address
        self.from_name = from_name

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> None:
        """Send via Resend HTTP API."""
        import httpx

        sender = f"{self.from_name} <{self.from_address}>"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    "https://api.resend.com/emails",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": sender,
                        "to": [to_email],
                        "subject": subject,
                        "html": html_body,
                        "text": text_body,
                        "reply_to": sender,
                    },
                    timeout=10.0,
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.exception("email_send_failed", to=to_email, provider=self.name)
            raise DeliveryError(DELIVERY_FAILED) from e
        logger.info("email_sent", to=to_email, subject=subject, provider=self.name)


def _create_provider() -> BaseEmailProvider:
    """Create email provider based on configuration."""
    settings = get_settings()
    provider_name = settings.email_provider.lower()

    if provider_name == "log":
        return LogProvider()
    if provider_name == "smtp":
        return SMTPProvider(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            use_tls=settings.smtp_use_tls,
        )
    if provider_name == "resend":
        if not settings.resend_api_key:
            logger.warning("resend_api_key_missing", fallback="log")
            return LogProvider()
        return ResendProvider(
            api_key=settings.resend_api_key,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
        )
    msg = f"Unsupported email provider: {provider_name}"
    raise ValueError(msg)


class EmailService:
    """
    High-level email service for MyEscrow.

    Renders templates and hands them to the configured provider. This is the
    only seam the verification flow talks to.
    """

    def __init__(self, provider: BaseEmailProvider | None = None) -> None:
        self.provider = provider or _create_provider()

    async def send_verification_email(
        self,
        to: str,
        code: str,
        expires_at: datetime,
        name: str | None = None,
    ) -> None:
        """Send the verification code. Raises DeliveryError on failure."""
        settings = get_settings()
        verify_url = f"{settings.frontend_base_url.rstrip('/')}/verify-email"
        subject, html_body, text_body = verification_code_email(
            name,
            code,
            expires_at,
            verify_url,
            ttl_minutes=settings.email_verification_ttl_minutes,
        )
        await self.provider.send(to, subject, html_body, text_body)


# Module-level singleton
_email_service: EmailService | None = None


def get_email_service() -> EmailService:
    """Get or create the email service singleton."""
    global _email_service  # noqa: PLW0603
    if _email_service is None:
        _email_service = EmailService()
    return _email_service


def reset_email_service() -> None:
    """Reset the email service singleton (for testing)."""
    global _email_service  # noqa: PLW0603
    _email_service = None
