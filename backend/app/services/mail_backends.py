"""
Outbound mail backends.

Every backend exposes the same capability:

    missing_settings() -> list[str]     configuration gaps, checked before dispatch
    health_check()     -> bool          connectivity check, never raises
    deliver(message)   -> DeliveryResult

and never lets a provider problem escape as an exception: network errors,
timeouts, auth failures and rejections all come back as
DeliveryResult(success=False, reason=ProviderError).

Supported backends (MAIL_BACKEND):
  - smtp     SMTP relay via aiosmtplib
  - brevo    Brevo transactional email HTTP API (default)
  - emailjs  EmailJS hosted template service, REST API

Adding a new backend:
  1. Subclass MailBackend and implement health_check() and deliver().
  2. Register it in _BACKENDS.
  3. Set MAIL_BACKEND=<name> in the environment.
"""

import asyncio
import base64
import logging
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Callable, Optional

import aiosmtplib
import httpx

from app.config import MailSettings
from app.models.submission import DeliveryMessage, DeliveryResult

logger = logging.getLogger(__name__)


def _response_detail(response: httpx.Response) -> Any:
    """Provider error body: decoded JSON when possible, raw text otherwise."""
    try:
        return response.json()
    except ValueError:
        return response.text


# ---------------------------------------------------------------------------
# Base capability
# ---------------------------------------------------------------------------

class MailBackend:
    """Base class for mail backends. One instance is shared by all requests."""

    name = "base"

    def __init__(self, settings: MailSettings):
        self.settings = settings

    def required_settings(self) -> dict[str, Optional[str]]:
        """Env var name -> configured value for everything deliver() needs."""
        return {
            "MAIL_FROM": self.settings.from_address,
            "MAIL_TO": self.settings.to_address,
        }

    def missing_settings(self) -> list[str]:
        return [name for name, value in self.required_settings().items() if not value]

    async def health_check(self) -> bool:
        raise NotImplementedError

    async def deliver(self, message: DeliveryMessage) -> DeliveryResult:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# SMTP relay
# ---------------------------------------------------------------------------

_SMTP_ERRORS = (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError)


class SmtpBackend(MailBackend):
    """
    Send through an SMTP relay.

    Port 465 uses implicit TLS; other ports upgrade with STARTTLS when the
    server offers it. The same timeout bounds connect, greeting and every
    socket read so a dead relay fails fast instead of hanging the request.
    """

    name = "smtp"

    def __init__(
        self,
        settings: MailSettings,
        smtp_factory: Callable[..., aiosmtplib.SMTP] = aiosmtplib.SMTP,
    ):
        super().__init__(settings)
        self._smtp_factory = smtp_factory

    def required_settings(self) -> dict[str, Optional[str]]:
        required = super().required_settings()
        required.update(
            {
                "SMTP_HOST": self.settings.relay_host,
                "SMTP_USER": self.settings.auth_user,
                "SMTP_PASS": self.settings.auth_secret,
            }
        )
        return required

    def _connection(self) -> aiosmtplib.SMTP:
        return self._smtp_factory(
            hostname=self.settings.relay_host,
            port=self.settings.relay_port,
            use_tls=self.settings.relay_port == 465,
            timeout=self.settings.timeout_seconds,
        )

    def build_email(self, message: DeliveryMessage) -> EmailMessage:
        """Assemble a multipart/alternative email with image attachments."""
        email = EmailMessage()
        email["From"] = formataddr((self.settings.from_name, self.settings.from_address))
        email["To"] = self.settings.to_address
        email["Subject"] = message.subject
        email.set_content(message.text_body)
        email.add_alternative(message.html_body, subtype="html")

        for attachment in message.attachments:
            maintype, _, subtype = attachment.content_type.partition("/")
            email.add_attachment(
                attachment.content,
                maintype=maintype or "application",
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )
        return email

    async def health_check(self) -> bool:
        """Connect, authenticate and quit without sending anything."""
        if self.missing_settings():
            return False
        try:
            async with self._connection() as smtp:
                await smtp.login(self.settings.auth_user, self.settings.auth_secret)
        except _SMTP_ERRORS as exc:
            logger.warning(f"SMTP health check failed: {exc}")
            return False
        return True

    async def deliver(self, message: DeliveryMessage) -> DeliveryResult:
        email = self.build_email(message)
        try:
            async with self._connection() as smtp:
                await smtp.login(self.settings.auth_user, self.settings.auth_secret)
                await smtp.send_message(email)
        except _SMTP_ERRORS as exc:
            logger.error(f"SMTP delivery failed: {exc}")
            return DeliveryResult.failed(str(exc) or exc.__class__.__name__)

        logger.info(f"Email relayed via {self.settings.relay_host}:{self.settings.relay_port}")
        return DeliveryResult.ok()


# ---------------------------------------------------------------------------
# Brevo transactional API
# ---------------------------------------------------------------------------

class BrevoBackend(MailBackend):
    """
    Send through Brevo's transactional email endpoint.

    One POST per message; attachments travel base64-encoded inside the JSON
    body. Any non-2xx status is a failure carrying Brevo's response body.
    """

    name = "brevo"

    def __init__(
        self,
        settings: MailSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(settings)
        self._transport = transport

    def required_settings(self) -> dict[str, Optional[str]]:
        required = super().required_settings()
        required["BREVO_API_KEY"] = self.settings.api_key
        return required

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.api_url,
            timeout=self.settings.timeout_seconds,
            transport=self._transport,
            headers={
                "accept": "application/json",
                "api-key": self.settings.api_key or "",
            },
        )

    def build_payload(self, message: DeliveryMessage) -> dict:
        payload = {
            "sender": {"name": self.settings.from_name, "email": self.settings.from_address},
            "to": [{"email": self.settings.to_address}],
            "subject": message.subject,
            "htmlContent": message.html_body,
            "textContent": message.text_body,
        }
        if message.attachments:
            payload["attachment"] = [
                {
                    "name": a.filename,
                    "content": base64.b64encode(a.content).decode(),
                }
                for a in message.attachments
            ]
        return payload

    async def health_check(self) -> bool:
        """Verify the API key against the account endpoint."""
        if not self.settings.api_key:
            return False
        try:
            async with self._client() as client:
                response = await client.get("/account")
        except httpx.HTTPError as exc:
            logger.warning(f"Brevo health check failed: {exc}")
            return False
        if not response.is_success:
            logger.warning(f"Brevo health check returned HTTP {response.status_code}")
        return response.is_success

    async def deliver(self, message: DeliveryMessage) -> DeliveryResult:
        payload = self.build_payload(message)
        try:
            async with self._client() as client:
                response = await client.post("/smtp/email", json=payload)
        except httpx.HTTPError as exc:
            logger.error(f"Brevo request failed: {exc}")
            return DeliveryResult.failed(str(exc) or exc.__class__.__name__)

        if not response.is_success:
            detail = _response_detail(response)
            logger.error(f"Brevo API error (HTTP {response.status_code}): {detail}")
            return DeliveryResult.failed(detail)

        logger.info("Email sent successfully via Brevo")
        return DeliveryResult.ok()


# ---------------------------------------------------------------------------
# EmailJS hosted templates
# ---------------------------------------------------------------------------

class EmailJsBackend(MailBackend):
    """
    Send through EmailJS: the hosted template renders and delivers the mail.

    Service, template and key identifiers are configuration. Form fields are
    passed as template parameters under their form keys, alongside subject,
    map_url and the rendered plain-text body as `message`.
    """

    name = "emailjs"

    def __init__(
        self,
        settings: MailSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(settings)
        self._transport = transport

    def required_settings(self) -> dict[str, Optional[str]]:
        required = super().required_settings()
        required.update(
            {
                "EMAILJS_SERVICE_ID": self.settings.widget_service_id,
                "EMAILJS_TEMPLATE_ID": self.settings.widget_template_id,
                "EMAILJS_PUBLIC_KEY": self.settings.widget_public_key,
            }
        )
        return required

    def build_payload(self, message: DeliveryMessage) -> dict:
        template_params = dict(message.fields)
        template_params.update(
            {
                "subject": message.subject,
                "message": message.text_body,
                "map_url": message.map_url or "",
                "from_name": self.settings.from_name,
                "from_email": self.settings.from_address,
                "to_email": self.settings.to_address,
            }
        )
        payload = {
            "service_id": self.settings.widget_service_id,
            "template_id": self.settings.widget_template_id,
            "user_id": self.settings.widget_public_key,
            "template_params": template_params,
        }
        if self.settings.widget_private_key:
            payload["accessToken"] = self.settings.widget_private_key
        return payload

    async def health_check(self) -> bool:
        # EmailJS has no side-effect-free endpoint to probe
        return not self.missing_settings()

    async def deliver(self, message: DeliveryMessage) -> DeliveryResult:
        if message.attachments:
            logger.warning(
                f"EmailJS backend does not forward attachments; "
                f"dropping {len(message.attachments)} image(s)"
            )
        payload = self.build_payload(message)
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(self.settings.widget_api_url, json=payload)
        except httpx.HTTPError as exc:
            logger.error(f"EmailJS request failed: {exc}")
            return DeliveryResult.failed(str(exc) or exc.__class__.__name__)

        if not response.is_success:
            detail = _response_detail(response)
            logger.error(f"EmailJS error (HTTP {response.status_code}): {detail}")
            return DeliveryResult.failed(detail)

        logger.info("Email sent successfully via EmailJS")
        return DeliveryResult.ok()


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_BACKENDS: dict[str, type[MailBackend]] = {
    "smtp": SmtpBackend,
    "brevo": BrevoBackend,
    "emailjs": EmailJsBackend,
}


def build_mail_backend(settings: MailSettings) -> MailBackend:
    """
    Instantiate the backend named by settings.backend.

    Raises ValueError for unknown backend names.
    """
    resolved = settings.backend.lower().strip()
    backend_cls = _BACKENDS.get(resolved)
    if backend_cls is None:
        raise ValueError(
            f"Unknown mail backend {resolved!r}. "
            f"Supported backends: {sorted(_BACKENDS)}"
        )
    return backend_cls(settings)
