"""
Form Mailer Backend API
FastAPI application that turns web form submissions into emails.
"""

import logging
import os
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from app.config import get_cors_origins
from app.dependencies import get_mail_backend, init_mail_backend
from app.errors import SubmissionError, submission_error_handler
from app.routers import submissions
from app.services.mail_backends import MailBackend

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Form Mailer API",
    description="Delivers form submissions (with optional images) by email",
    version="0.1.0",
)

# CORS configuration: origins are resolved at startup from environment.
# No cookies or auth headers are involved, so credentials stay disabled.
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(SubmissionError, submission_error_handler)

# Include routers
app.include_router(submissions.router, tags=["submissions"])


@app.on_event("startup")
async def check_mail_backend() -> None:
    """
    Build the mail backend and report its configuration and reachability.

    Only whether each setting is present is logged, never its value. A
    failed health check is logged but does not stop the server: the relay
    may come up later and /health can be polled on demand.
    """
    backend = init_mail_backend(app)
    logger.info(f"Mail backend: {backend.name}")
    for name, value in backend.required_settings().items():
        logger.info(f"  {name}: {'SET' if value else 'NOT SET'}")

    if backend.missing_settings():
        logger.warning("Mail backend is misconfigured; submissions will fail with 500")
        return

    if await backend.health_check():
        logger.info("Mail backend is reachable")
    else:
        logger.warning("Mail backend health check failed at startup")


@app.get("/", response_class=PlainTextResponse)
async def root(backend: MailBackend = Depends(get_mail_backend)):
    return f"Backend running with {backend.name} backend"


@app.get("/health")
async def health(backend: MailBackend = Depends(get_mail_backend)):
    """
    Check the mail backend.

    SMTP and Brevo perform a live check against the provider. Returns 503
    when the check fails.
    """
    ok = await backend.health_check()
    return JSONResponse(
        status_code=200 if ok else 503,
        content={
            "ok": ok,
            "backend": backend.name,
            "time": datetime.now(timezone.utc).isoformat(),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
