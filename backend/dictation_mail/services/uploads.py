"""
Signed upload URLs so the app can PUT recordings and transcriptions
straight into storage.
"""

import logging

from dictation_mail.config import Settings
from dictation_mail.errors import MalformedRequest, UnsupportedContentType
from dictation_mail.models.delivery import UploadUrlRequest, UploadUrlResponse
from dictation_mail.services.keys import validate_key
from dictation_mail.services.storage import SupabaseAssetStorage

logger = logging.getLogger(__name__)


def sign_upload(
    request: UploadUrlRequest,
    subject_id: str,
    settings: Settings,
    storage: SupabaseAssetStorage,
) -> UploadUrlResponse:
    """
    Validate an upload request and return a signed PUT URL.

    Raises:
        InvalidKey / Forbidden: the key is outside the permitted namespace
        UnsupportedContentType: content type not in the upload allowlist
        MalformedRequest: content length missing or over the upload limit
    """
    key = validate_key(request.key, subject_id, settings)

    if request.content_type not in settings.upload_allowed_content_types:
        raise UnsupportedContentType(f"Unsupported contentType: {request.content_type}")

    if request.content_length <= 0 or request.content_length > settings.upload_max_bytes:
        raise MalformedRequest(
            f"contentLength missing or exceeds limit ({settings.upload_max_bytes} bytes)."
        )

    signed = storage.presign_put(key)
    logger.info(f"Signed upload for user {subject_id}: {key} ({request.content_length} bytes)")

    return UploadUrlResponse(
        url=signed.url,
        token=signed.token,
        method="PUT",
        headers={
            "Content-Type": request.content_type,
            "Content-Length": str(request.content_length),
        },
        key=key,
        bucket=storage.bucket,
        uid=subject_id,
    )
