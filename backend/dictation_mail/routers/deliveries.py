"""
File delivery API endpoints.

Endpoints:
  POST /send-files     email a recording and/or transcription (auth: JWT)
  POST /uploads/sign   signed PUT URL for uploading a file (auth: JWT)
"""

import logging

from fastapi import APIRouter, Depends

from dictation_mail.auth import get_current_user
from dictation_mail.clients import get_delivery_service, get_storage
from dictation_mail.config import Settings, get_settings
from dictation_mail.models.delivery import (
    SendFilesRequest,
    SendFilesResponse,
    UploadUrlRequest,
    UploadUrlResponse,
)
from dictation_mail.services.delivery import FileDeliveryService
from dictation_mail.services.storage import SupabaseAssetStorage
from dictation_mail.services.uploads import sign_upload

router = APIRouter()

logger = logging.getLogger(__name__)


@router.post("/send-files", response_model=SendFilesResponse)
async def send_files(
    body: SendFilesRequest,
    user_id: str = Depends(get_current_user),
    service: FileDeliveryService = Depends(get_delivery_service),
):
    """
    Email the caller's files, either attached or as signed download links.

    The delivery mode is chosen from the file sizes; the response lists the
    links that were sent (empty when the files were attached).
    """
    logger.info(
        f"Send request from user {user_id}: to={body.to_email!r}, "
        f"recording={body.recording_key!r}, transcription={body.transcription_key!r}"
    )
    return await service.deliver(body, user_id)


@router.post("/uploads/sign", response_model=UploadUrlResponse)
async def sign_upload_url(
    body: UploadUrlRequest,
    user_id: str = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    storage: SupabaseAssetStorage = Depends(get_storage),
):
    """Return a signed URL the app can PUT the file to."""
    return sign_upload(body, user_id, settings, storage)
