"""
Required-field validation for form submissions.

The required set is configuration (see app.config.FormSettings), so the
same code serves the waste-collection form and the simple contact form.
"""

from typing import Any, Iterable, Mapping

from app.errors import SubmissionError
from app.models.submission import FailureReason


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def find_missing_fields(fields: Mapping[str, Any], required: Iterable[str]) -> list[str]:
    """
    Return the required keys that are absent, None, or blank strings.

    Order follows `required`. Structured values (e.g. a location dict) count
    as present. Fields not listed in `required` are never reported.
    """
    return [key for key in required if _is_blank(fields.get(key))]


def validate_required_fields(fields: Mapping[str, Any], required: Iterable[str]) -> None:
    """
    Raise SubmissionError (400, MissingFields) if any required field is missing.

    The error names every missing key, not just the first one.
    """
    missing = find_missing_fields(fields, required)
    if missing:
        raise SubmissionError(
            FailureReason.MISSING_FIELDS,
            f"Missing required fields: {', '.join(missing)}",
            status_code=400,
            extra={"missing_fields": missing},
        )
