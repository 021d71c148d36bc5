"""
Submission errors.

SubmissionError carries everything needed to render the stable
{"success": false, ...} response body; the handler registered in
app.main turns it into a JSONResponse.
"""

from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from app.models.submission import FailureReason


class SubmissionError(Exception):
    """A submission that cannot be delivered, with its HTTP mapping."""

    def __init__(
        self,
        reason: FailureReason,
        message: str,
        status_code: int = 400,
        detail: Any = None,
        extra: Optional[dict] = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.status_code = status_code
        self.detail = detail
        self.extra = extra or {}

    def to_body(self) -> dict:
        body = {
            "success": False,
            "message": self.message,
            "reason": self.reason.value,
        }
        if self.status_code >= 500:
            body["error"] = self.detail if self.detail is not None else self.message
        body.update(self.extra)
        return body


async def submission_error_handler(_request: Request, exc: SubmissionError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())
