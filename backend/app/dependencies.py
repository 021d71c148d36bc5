"""
Request dependencies.

The mail backend is built once per process and kept on app.state; every
request reuses it. Tests swap it out with app.dependency_overrides.
"""

import logging

from fastapi import Request

from app.config import FormSettings, load_form_settings, load_mail_settings
from app.errors import SubmissionError
from app.models.submission import FailureReason
from app.services.mail_backends import MailBackend, build_mail_backend

logger = logging.getLogger(__name__)


def init_mail_backend(app) -> MailBackend:
    """Build the configured backend and store it on app.state."""
    backend = build_mail_backend(load_mail_settings())
    app.state.mail_backend = backend
    return backend


def get_mail_backend(request: Request) -> MailBackend:
    """
    Return the shared backend, building it on first use.

    An unknown MAIL_BACKEND surfaces as a 500 Misconfigured response rather
    than an unhandled ValueError.
    """
    backend = getattr(request.app.state, "mail_backend", None)
    if backend is None:
        try:
            backend = init_mail_backend(request.app)
        except ValueError as exc:
            logger.error(f"Cannot build mail backend: {exc}")
            raise SubmissionError(
                FailureReason.MISCONFIGURED,
                "Server email settings not configured",
                status_code=500,
                detail=str(exc),
            ) from exc
    return backend


def get_form_settings(request: Request) -> FormSettings:
    settings = getattr(request.app.state, "form_settings", None)
    if settings is None:
        settings = load_form_settings()
        request.app.state.form_settings = settings
    return settings
