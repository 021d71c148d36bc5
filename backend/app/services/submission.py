"""
Submission pipeline.

    Received -> Validated -> LocationNormalized -> MessageComposed
             -> Dispatched -> Succeeded | Failed

Each stage either hands its output to the next or stops the request; there
is no retry and no partial success. Client-input and configuration problems
raise SubmissionError; provider outcomes come back as a DeliveryResult.
"""

import logging
from typing import Any, Mapping, Sequence

from app.config import FormSettings
from app.errors import SubmissionError
from app.models.submission import DeliveryResult, FailureReason, ImageAttachment
from app.services.location import normalize_location
from app.services.mail_backends import MailBackend
from app.services.message_builder import build_delivery_message
from app.services.validator import validate_required_fields

logger = logging.getLogger(__name__)


async def process_submission(
    fields: Mapping[str, Any],
    attachments: Sequence[ImageAttachment],
    form_settings: FormSettings,
    backend: MailBackend,
) -> DeliveryResult:
    """
    Validate, normalize, compose and dispatch one submission.

    Raises:
        SubmissionError: MissingFields (400) or Misconfigured (500). The
            configuration check runs before dispatch, so a misconfigured
            backend is never asked to touch the network.
    """
    required = form_settings.required_fields
    validate_required_fields(fields, required)

    location = None
    if "location" in fields:
        location = normalize_location(fields["location"])

    message = build_delivery_message(
        fields,
        location,
        attachments,
        subject=backend.settings.subject,
        required=required,
    )

    missing = backend.missing_settings()
    if missing:
        logger.error(f"Mail backend '{backend.name}' not configured; missing: {', '.join(missing)}")
        raise SubmissionError(
            FailureReason.MISCONFIGURED,
            "Server email settings not configured",
            status_code=500,
            detail={"missing_settings": missing},
        )

    logger.info(f"Sending email via {backend.name} backend...")
    return await backend.deliver(message)
