"""
Dictation Mail API
FastAPI application that emails recordings and transcriptions, either as
attachments or as signed download links.
"""

import logging
import os
from typing import List

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dictation_mail.clients import get_storage
from dictation_mail.config import get_settings
from dictation_mail.errors import DeliveryError, MalformedRequest
from dictation_mail.routers import deliveries

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Dictation Mail API",
    description="Email delivery of dictation recordings and transcriptions",
    version="0.1.0",
)


def get_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Read from the CORS_ORIGINS environment variable as a comma-separated
    list, e.g.:
        CORS_ORIGINS=https://app.example.com,https://preview.example.com

    Defaults to "*" when unset. Duplicates are removed while preserving order.
    """
    cors_env = os.getenv("CORS_ORIGINS", "").strip()
    if not cors_env:
        return ["*"]

    seen: set = set()
    origins: List[str] = []
    for origin in (o.strip() for o in cors_env.split(",")):
        if origin and origin not in seen:
            seen.add(origin)
            origins.append(origin)
    return origins


# Bearer tokens only; no cookies.
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=False,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Authorization"],
)

app.include_router(deliveries.router, prefix="/api", tags=["deliveries"])


@app.exception_handler(RequestValidationError)
async def malformed_request_handler(request: Request, exc: RequestValidationError):
    """Report schema violations as MalformedRequest (400) instead of FastAPI's 422."""
    messages = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    error = MalformedRequest("; ".join(messages) or "Malformed request")
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"detail": {"code": "InternalError", "message": "Internal error"}},
    )


@app.on_event("startup")
async def log_startup_config() -> None:
    settings = get_settings()
    mode = (
        "tenancy prefix users/<uid>/"
        if settings.require_uid_prefix
        else f"allowed prefixes {', '.join(settings.allowed_prefixes)}"
    )
    logger.info(
        f"Dictation Mail API starting: bucket={settings.storage_bucket}, "
        f"sender={settings.from_email or '(unset)'}, keys: {mode}"
    )
    if not settings.from_email:
        logger.warning("FROM_EMAIL / SENDER_DOMAIN not set; send-files requests will fail")


@app.get("/")
async def root():
    return {"message": "Dictation Mail API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/health/storage")
async def health_storage():
    """
    Test Supabase Storage access.

    Lists storage buckets and verifies the configured bucket exists.
    Returns 503 if storage is unreachable or the bucket is missing.
    """
    settings = get_settings()
    try:
        storage = get_storage(settings)
    except DeliveryError as exc:
        raise HTTPException(status_code=503, detail=exc.message)

    try:
        exists = storage.bucket_exists()
    except Exception as exc:
        logger.error(f"Storage health check failed: {exc}")
        raise HTTPException(
            status_code=503,
            detail=f"Storage check failed: {str(exc)}",
        )

    if not exists:
        raise HTTPException(
            status_code=503,
            detail=f"Storage bucket '{settings.storage_bucket}' not found",
        )
    return {"status": "ok", "storage": "reachable", "bucket": settings.storage_bucket}
