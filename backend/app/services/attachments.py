"""
Image upload intake for form submissions.

Reads multipart uploads into ImageAttachment models and enforces the
upload limits (count, per-file size, image MIME types only).
"""

import logging
from typing import Sequence

from fastapi import UploadFile

from app.config import DEFAULT_MAX_IMAGE_BYTES, DEFAULT_MAX_IMAGES
from app.errors import SubmissionError
from app.models.submission import FailureReason, ImageAttachment

logger = logging.getLogger(__name__)


def _is_placeholder(upload: UploadFile) -> bool:
    # Browsers send an empty part with no filename when no file was chosen
    return not upload.filename and upload.size in (None, 0)


async def read_image_attachments(
    uploads: Sequence[UploadFile],
    max_count: int = DEFAULT_MAX_IMAGES,
    max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
) -> list[ImageAttachment]:
    """
    Validate and read uploaded images.

    The count check runs before any file is read, so an oversized batch is
    rejected cheaply.

    Raises:
        SubmissionError: 400 with TooManyAttachments, InvalidAttachmentType
            or AttachmentTooLarge.
    """
    files = [u for u in uploads if not _is_placeholder(u)]

    if len(files) > max_count:
        raise SubmissionError(
            FailureReason.TOO_MANY_ATTACHMENTS,
            f"Maximum {max_count} images allowed",
            status_code=400,
        )

    attachments: list[ImageAttachment] = []
    for upload in files:
        content_type = (upload.content_type or "").lower()
        filename = upload.filename or "image"

        if not content_type.startswith("image/"):
            raise SubmissionError(
                FailureReason.INVALID_ATTACHMENT_TYPE,
                "Only image files are allowed",
                status_code=400,
                extra={"filename": filename},
            )

        # Read one byte past the limit so oversize files are detected
        # without buffering all of them.
        content = await upload.read(max_bytes + 1)
        if len(content) > max_bytes:
            raise SubmissionError(
                FailureReason.ATTACHMENT_TOO_LARGE,
                f"Image {filename!r} exceeds the {max_bytes // (1024 * 1024)} MB limit",
                status_code=400,
                extra={"filename": filename},
            )

        attachments.append(
            ImageAttachment(filename=filename, content=content, content_type=content_type)
        )

    logger.info(f"Attachments: {len(attachments)} image(s)")
    return attachments
