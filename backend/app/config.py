"""
Runtime configuration.
Reads mail backend credentials and form settings from the environment
(a local .env file is loaded first when present).
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

# Waste-collection form (the richer of the two deployed form variants)
DEFAULT_REQUIRED_FIELDS = [
    "name",
    "contactNumber",
    "area",
    "locality",
    "wasteType",
    "wasteAmount",
    "location",
]

DEFAULT_SUBJECT = "New Waste Collection Request"
DEFAULT_FROM_NAME = "Form Bot"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_IMAGES = 5
DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024

BREVO_API_URL = "https://api.brevo.com/v3"
EMAILJS_API_URL = "https://api.emailjs.com/api/v1.0/email/send"


class MailSettings(BaseModel):
    """Everything a mail backend needs. Unset values stay None."""

    backend: str = "brevo"
    from_address: Optional[str] = None
    from_name: str = DEFAULT_FROM_NAME
    to_address: Optional[str] = None
    subject: str = DEFAULT_SUBJECT
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    # SMTP relay
    relay_host: Optional[str] = None
    relay_port: int = 587
    auth_user: Optional[str] = None
    auth_secret: Optional[str] = None

    # Transactional HTTP API (Brevo)
    api_key: Optional[str] = None
    api_url: str = BREVO_API_URL

    # Email widget service (EmailJS)
    widget_service_id: Optional[str] = None
    widget_template_id: Optional[str] = None
    widget_public_key: Optional[str] = None
    widget_private_key: Optional[str] = None
    widget_api_url: str = EMAILJS_API_URL


class FormSettings(BaseModel):
    """Which fields a submission must carry, and the upload limits."""

    required_fields: list[str] = DEFAULT_REQUIRED_FIELDS
    max_images: int = DEFAULT_MAX_IMAGES
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES


def _env(name: str) -> Optional[str]:
    """Return a stripped env var, treating blank values as unset."""
    value = os.getenv(name, "").strip()
    return value or None


def _split_csv(raw: Optional[str]) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def load_mail_settings() -> MailSettings:
    """Build MailSettings from the current environment."""
    return MailSettings(
        backend=(_env("MAIL_BACKEND") or "brevo").lower(),
        from_address=_env("MAIL_FROM"),
        from_name=_env("MAIL_FROM_NAME") or DEFAULT_FROM_NAME,
        to_address=_env("MAIL_TO"),
        subject=_env("MAIL_SUBJECT") or DEFAULT_SUBJECT,
        timeout_seconds=float(_env("MAIL_TIMEOUT_SECONDS") or DEFAULT_TIMEOUT_SECONDS),
        relay_host=_env("SMTP_HOST"),
        relay_port=int(_env("SMTP_PORT") or 587),
        auth_user=_env("SMTP_USER"),
        auth_secret=_env("SMTP_PASS"),
        api_key=_env("BREVO_API_KEY"),
        api_url=_env("BREVO_API_URL") or BREVO_API_URL,
        widget_service_id=_env("EMAILJS_SERVICE_ID"),
        widget_template_id=_env("EMAILJS_TEMPLATE_ID"),
        widget_public_key=_env("EMAILJS_PUBLIC_KEY"),
        widget_private_key=_env("EMAILJS_PRIVATE_KEY"),
        widget_api_url=_env("EMAILJS_API_URL") or EMAILJS_API_URL,
    )


def load_form_settings() -> FormSettings:
    """
    Build FormSettings from the current environment.

    FORM_REQUIRED_FIELDS is a comma-separated list, e.g.
        FORM_REQUIRED_FIELDS=name,phone,location
    for the simple contact variant. Falls back to the waste-collection set.
    """
    required = _split_csv(_env("FORM_REQUIRED_FIELDS")) or list(DEFAULT_REQUIRED_FIELDS)
    return FormSettings(
        required_fields=required,
        max_images=int(_env("MAX_IMAGES") or DEFAULT_MAX_IMAGES),
        max_image_bytes=int(_env("MAX_IMAGE_BYTES") or DEFAULT_MAX_IMAGE_BYTES),
    )


def get_cors_origins() -> list[str]:
    """
    Allowed CORS origins from CORS_ORIGINS (comma-separated).

    Defaults to ["*"]: the form is embedded on public static sites.
    Duplicates are removed while preserving order.
    """
    seen: set = set()
    origins: list[str] = []
    for origin in _split_csv(_env("CORS_ORIGINS")):
        if origin not in seen:
            seen.add(origin)
            origins.append(origin)
    return origins or ["*"]
