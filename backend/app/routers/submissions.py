"""
Form submission router.

Endpoints:
  POST /send-email : deliver a form submission by email

Accepts either multipart/form-data (text fields plus up to MAX_IMAGES
`images` parts) or a JSON object of fields. In JSON bodies `location` may be
an object such as {"lat": 12.97, "lng": 77.59}; in multipart bodies it is a
string, possibly JSON-encoded.

Responses:
  200  {"success": true,  "message": ...}
  400  {"success": false, "message": ..., "reason": ...}            bad input
  500  {"success": false, "message": ..., "reason": ..., "error": ...}
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.config import FormSettings
from app.dependencies import get_form_settings, get_mail_backend
from app.errors import SubmissionError
from app.models.submission import FailureReason, ImageAttachment
from app.services.attachments import read_image_attachments
from app.services.mail_backends import MailBackend
from app.services.submission import process_submission

logger = logging.getLogger(__name__)

router = APIRouter()

_IMAGES_FIELD = "images"


async def _read_submission(
    request: Request,
    form_settings: FormSettings,
) -> tuple[dict[str, Any], list[ImageAttachment]]:
    """Split the request body into form fields and validated image attachments."""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        fields: dict[str, Any] = {}
        uploads = []
        for key, value in form.multi_items():
            if isinstance(value, str):
                fields[key] = value
            elif key == _IMAGES_FIELD:
                uploads.append(value)
            else:
                logger.warning(f"Ignoring unexpected file field '{key}'")

        attachments = await read_image_attachments(
            uploads,
            max_count=form_settings.max_images,
            max_bytes=form_settings.max_image_bytes,
        )
        return fields, attachments

    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        raise SubmissionError(
            FailureReason.INVALID_BODY,
            "Request body must be a JSON object or multipart form data",
            status_code=400,
        )
    return body, []


@router.post("/send-email")
async def send_email(
    request: Request,
    backend: MailBackend = Depends(get_mail_backend),
    form_settings: FormSettings = Depends(get_form_settings),
):
    """
    Validate a form submission and send it through the configured backend.

    Nothing is retried; the submitter resubmits on failure.
    """
    logger.info("Received email request")

    try:
        fields, attachments = await _read_submission(request, form_settings)
        logger.info(
            f"Form data: fields={sorted(fields)}, "
            f"location={'present' if fields.get('location') else 'missing'}, "
            f"attachments={len(attachments)}"
        )
        result = await process_submission(fields, attachments, form_settings, backend)
    except SubmissionError as exc:
        if exc.status_code < 500:
            logger.warning(f"Rejected submission ({exc.reason.value}): {exc.message}")
        raise
    except Exception as exc:
        logger.exception("Unexpected error while handling submission")
        raise SubmissionError(
            FailureReason.UNEXPECTED_ERROR,
            "Server error",
            status_code=500,
            detail=str(exc),
        ) from exc

    if result.success:
        return {"success": True, "message": "Email sent successfully!"}

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": f"Email delivery via {backend.name} failed",
            "reason": result.reason.value,
            "error": result.provider_detail,
        },
    )
