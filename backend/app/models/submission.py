"""
Submission pipeline models.

A form submission flows through these shapes within a single request:
ImageAttachment (uploads) -> NormalizedLocation -> DeliveryMessage ->
DeliveryResult. Nothing here outlives the request.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class FailureReason(str, Enum):
    """Stable failure codes returned to the form in the `reason` field."""

    MISSING_FIELDS = "MissingFields"
    TOO_MANY_ATTACHMENTS = "TooManyAttachments"
    INVALID_ATTACHMENT_TYPE = "InvalidAttachmentType"
    ATTACHMENT_TOO_LARGE = "AttachmentTooLarge"
    INVALID_BODY = "InvalidBody"
    MISCONFIGURED = "Misconfigured"
    PROVIDER_ERROR = "ProviderError"
    UNEXPECTED_ERROR = "UnexpectedError"


class ImageAttachment(BaseModel):
    """An uploaded image, already read into memory."""

    filename: str
    content: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)


class NormalizedLocation(BaseModel):
    """
    Canonical form of the submitted location.

    map_url is only set when coordinates were extracted or when the raw
    text could be used as a map search query.
    """

    display_string: str
    map_url: Optional[str] = None


class DeliveryMessage(BaseModel):
    """
    Provider-agnostic outbound email.

    fields keeps the ordered form key -> rendered value pairs the bodies were
    built from, so template-driven backends can forward them as parameters.
    """

    subject: str
    text_body: str
    html_body: str
    attachments: list[ImageAttachment] = []
    fields: dict[str, str] = {}
    map_url: Optional[str] = None


class DeliveryResult(BaseModel):
    """
    Outcome of a dispatch attempt.

    Explicit result type: backends return it instead of raising, so the
    router only has to look at `success`.
    """

    success: bool
    reason: Optional[FailureReason] = None
    provider_detail: Any = None

    @classmethod
    def ok(cls) -> "DeliveryResult":
        return cls(success=True)

    @classmethod
    def failed(
        cls,
        provider_detail: Any = None,
        reason: FailureReason = FailureReason.PROVIDER_ERROR,
    ) -> "DeliveryResult":
        return cls(success=False, reason=reason, provider_detail=provider_detail)

    def __repr__(self) -> str:
        if self.success:
            return "DeliveryResult(success=True)"
        return f"DeliveryResult(success=False, reason={self.reason}, detail={self.provider_detail!r})"
